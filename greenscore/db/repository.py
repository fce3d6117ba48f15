"""Data access repositories for DoltDB / MySQL.

Simple CRUD operations for each table. Vote-driven writes to shop_badges and
shops.green_score go through SqlTallyStore (stores.py), which wraps them in a
transaction; these repositories handle seeding and reads.
"""

from dataclasses import dataclass, fields

from greenscore.schemas.badge import BadgeDefinition
from greenscore.schemas.enums import BadgeLevel
from greenscore.scorers.badge_evaluator import EvaluatedBadge
from greenscore.scorers.vote_tally import VoteTally

from .client import execute_many, execute_query


@dataclass
class Shop:
    """Shop record."""

    id: str
    name: str
    owner_id: str | None = None
    description: str | None = None
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    is_verified: bool = False
    green_score: int = 0  # Raw aggregate, may exceed 100

    @classmethod
    def from_row(cls, row: dict) -> "Shop":
        known = {f.name for f in fields(cls)}
        data = {k: v for k, v in row.items() if k in known}
        if "is_verified" in data:
            data["is_verified"] = bool(data["is_verified"])
        if data.get("green_score") is None:
            data["green_score"] = 0
        return cls(**data)


@dataclass
class ShopBadge:
    """Stored tally plus its last computed evaluation."""

    shop_id: str
    badge_id: str
    yes_count: int = 0
    no_count: int = 0
    percentage: int = 0
    level: str = BadgeLevel.NONE.value
    is_eligible: bool = False

    @classmethod
    def from_row(cls, row: dict) -> "ShopBadge":
        return cls(
            shop_id=row["shop_id"],
            badge_id=row["badge_id"],
            yes_count=int(row.get("yes_count") or 0),
            no_count=int(row.get("no_count") or 0),
            percentage=int(row.get("percentage") or 0),
            level=row.get("level") or BadgeLevel.NONE.value,
            is_eligible=bool(row.get("is_eligible")),
        )

    def to_tally(self) -> VoteTally:
        return VoteTally(
            shop_id=self.shop_id,
            badge_id=self.badge_id,
            yes_count=self.yes_count,
            no_count=self.no_count,
        )

    def cached_evaluation(self) -> EvaluatedBadge:
        """The evaluation as last persisted (may lag a config change until rebuild)."""
        return EvaluatedBadge(
            percentage=self.percentage,
            total_reports=self.yes_count + self.no_count,
            is_eligible=self.is_eligible,
            level=BadgeLevel(self.level),
        )


class ShopRepository:
    """Shop table operations."""

    # Columns that can be inserted/updated
    COLUMNS = ["id", "name", "owner_id", "description", "address", "latitude", "longitude", "is_verified"]

    def upsert(self, shop: Shop | dict) -> None:
        """Insert or update shop profile fields. green_score is never written here."""
        data = shop.__dict__ if isinstance(shop, Shop) else shop
        # Filter to known columns only (prevents SQL injection via dict keys)
        data = {k: v for k, v in data.items() if v is not None and k in self.COLUMNS}

        if not data.get("id"):
            raise ValueError("id is required for shop upsert")

        columns = list(data.keys())
        placeholders = ", ".join(["%s"] * len(columns))
        update_clause = ", ".join([f"`{col}` = VALUES(`{col}`)" for col in columns if col != "id"])

        sql = f"""
            INSERT INTO shops ({", ".join(f"`{c}`" for c in columns)})
            VALUES ({placeholders})
            ON DUPLICATE KEY UPDATE {update_clause}
        """
        execute_query(sql, tuple(data.values()), fetch="none")

    def get(self, shop_id: str) -> Shop | None:
        row = execute_query("SELECT * FROM shops WHERE id = %s", (shop_id,), fetch="one")
        return Shop.from_row(row) if row else None

    def get_all(self, verified_only: bool = False) -> list[Shop]:
        sql = "SELECT * FROM shops"
        if verified_only:
            sql += " WHERE is_verified = TRUE"
        return [Shop.from_row(row) for row in execute_query(sql) or []]

    def get_ids(self) -> list[str]:
        return [row["id"] for row in execute_query("SELECT id FROM shops ORDER BY id") or []]


class BadgeRepository:
    """Badge definition table operations (seeded from the catalog)."""

    def seed(self, definitions: list[BadgeDefinition]) -> int:
        """Insert or refresh every catalog definition. Returns rows affected."""
        if not definitions:
            return 0
        sql = """
            INSERT INTO badges (`id`, `name`, `description`, `category`, `icon`)
            VALUES (%s, %s, %s, %s, %s)
            ON DUPLICATE KEY UPDATE
                `name` = VALUES(`name`),
                `description` = VALUES(`description`),
                `category` = VALUES(`category`),
                `icon` = VALUES(`icon`)
        """
        params = [(d.id, d.name, d.description, d.category.value, d.icon) for d in definitions]
        return execute_many(sql, params)

    def get_all(self) -> list[BadgeDefinition]:
        rows = execute_query("SELECT id, name, description, category, icon FROM badges ORDER BY id") or []
        return [BadgeDefinition(**row) for row in rows]


class ShopBadgeRepository:
    """Read access to per-shop badge tallies and their stored evaluations."""

    def get_for_shop(self, shop_id: str) -> list[ShopBadge]:
        rows = execute_query("SELECT * FROM shop_badges WHERE shop_id = %s ORDER BY badge_id", (shop_id,)) or []
        return [ShopBadge.from_row(row) for row in rows]
