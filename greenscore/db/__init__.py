"""DoltDB / MySQL client, repositories and tally stores.

Provides:
- Thread-local connection reuse and transactions (MySQL protocol)
- Repository classes for shops, badges and shop badge tallies
- TallyStore implementations that apply votes atomically
"""

from .client import apply_schema, check_connection, execute_query, get_connection, get_cursor, transaction
from .repository import BadgeRepository, Shop, ShopBadge, ShopBadgeRepository, ShopRepository
from .stores import InMemoryTallyStore, SqlTallyStore, TallyStore

__all__ = [
    # Client
    "apply_schema",
    "check_connection",
    "execute_query",
    "get_connection",
    "get_cursor",
    "transaction",
    # Dataclasses
    "Shop",
    "ShopBadge",
    # Repositories
    "BadgeRepository",
    "ShopBadgeRepository",
    "ShopRepository",
    # Stores
    "InMemoryTallyStore",
    "SqlTallyStore",
    "TallyStore",
]
