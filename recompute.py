"""
Recompute - seed the badge catalog and rebuild shop Green Scores from stored tallies.

Tallies are the source of truth; badge evaluations and shop scores are derived.
Run this after changing config/scoring.yaml, or to repair derived values.

Usage:
    uv run python recompute.py --init-db --seed
    uv run python recompute.py --shop shop-123
    uv run python recompute.py --all --workers 8
    uv run python recompute.py --badges shop-123
    uv run python recompute.py --leaderboard --search cafe
"""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

# Load environment variables
load_dotenv(Path(__file__).parent / ".env")

from greenscore.catalog import get_badge_catalog
from greenscore.config import get_log_level
from greenscore.constants import DEFAULT_WORKERS
from greenscore.db import (
    BadgeRepository,
    ShopBadgeRepository,
    ShopRepository,
    SqlTallyStore,
    apply_schema,
    check_connection,
)
from greenscore.errors import GreenScoreError
from greenscore.services import BadgeScoringService, build_leaderboard, leaderboard_stats
from greenscore.utils import WorkerPool, configure_global_logging, get_logger

console = Console()


def print_leaderboard(search: str, sort_by: str) -> None:
    entries = build_leaderboard(ShopRepository().get_all(verified_only=True), search=search, sort_by=sort_by)
    stats = leaderboard_stats(entries)

    table = Table(title="Green Score Leaderboard")
    table.add_column("#", justify="right")
    table.add_column("Shop")
    table.add_column("Score", justify="right")
    table.add_column("Grade", justify="center")
    table.add_column("Rating")
    for entry in entries:
        table.add_row(str(entry.rank), entry.name, str(entry.display_score), entry.grade, entry.label)

    console.print(table)
    console.print(
        f"[bold]{stats.total_shops}[/bold] shops | "
        f"[bold]{stats.top_grade_shops}[/bold] at A+ | "
        f"average [bold]{stats.average_score}[/bold]"
    )


def print_shop_badges(shop_id: str) -> int:
    """Show the badge levels last persisted for a shop. Returns the number of stored badges."""
    badges = ShopBadgeRepository().get_for_shop(shop_id)

    table = Table(title=f"Stored badges for {shop_id}")
    table.add_column("Badge")
    table.add_column("Yes", justify="right")
    table.add_column("No", justify="right")
    table.add_column("%", justify="right")
    table.add_column("Level")
    for badge in badges:
        evaluated = badge.cached_evaluation()
        level = evaluated.level.value if evaluated.is_eligible else f"{evaluated.level.value} (needs votes)"
        table.add_row(badge.badge_id, str(badge.yes_count), str(badge.no_count), str(evaluated.percentage), level)

    console.print(table)
    if not badges:
        console.print(f"No votes stored for {shop_id}")
    return len(badges)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed badges and recompute shop Green Scores")
    parser.add_argument("--init-db", action="store_true", help="Create tables if missing")
    parser.add_argument("--seed", action="store_true", help="Upsert the badge catalog into the badges table")
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--shop", type=str, help="Recompute a single shop")
    target.add_argument("--all", action="store_true", help="Recompute every shop")
    parser.add_argument("--workers", type=int, default=DEFAULT_WORKERS, help=f"Parallel workers for --all (default: {DEFAULT_WORKERS})")
    parser.add_argument("--badges", type=str, metavar="SHOP", help="Print the stored badge levels of a shop")
    parser.add_argument("--leaderboard", action="store_true", help="Print the leaderboard after recomputing")
    parser.add_argument("--search", type=str, default="", help="Filter leaderboard by shop name")
    parser.add_argument("--sort", choices=["score", "name"], default="score", help="Leaderboard order")
    args = parser.parse_args()

    if not any([args.init_db, args.seed, args.shop, args.all, args.badges, args.leaderboard]):
        parser.print_help()
        return 1

    log_level = get_log_level()
    configure_global_logging(log_level, task="recompute")
    logger = get_logger("greenscore.recompute", log_level=log_level, task="recompute")

    if not check_connection():
        logger.error("Cannot connect to database (check GREENSCORE_DB_* settings)")
        return 1

    try:
        if args.init_db:
            count = apply_schema()
            logger.info("Schema applied", statements=count)

        catalog = get_badge_catalog()
        if args.seed:
            rows = BadgeRepository().seed(list(catalog))
            logger.info("Badge catalog seeded", badges=len(catalog), rows_affected=rows)

        service = BadgeScoringService(SqlTallyStore(), catalog=catalog)

        if args.shop:
            score = service.recompute_shop(args.shop)
            logger.info("Shop score", shop=args.shop, score=score)
        elif args.all:
            shop_ids = ShopRepository().get_ids()
            logger.log_run_start(len(shop_ids))
            pool = WorkerPool(max_workers=args.workers, logger=logger.logger)
            results = pool.map(service.recompute_shop, shop_ids, desc="Recompute")
            for result in results:
                if not result.ok:
                    logger.error("Recompute failed", exception=result.error, shop=result.item)
            stats = pool.get_stats()
            logger.log_run_complete(succeeded=stats.succeeded, failed=stats.failed)
            if stats.failed:
                return 1

        if args.badges:
            print_shop_badges(args.badges)

        if args.leaderboard:
            print_leaderboard(args.search, args.sort)
    except GreenScoreError as e:
        logger.error("Recompute aborted", exception=e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
