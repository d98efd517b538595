"""Registry of user-scoped tables.

Learn: Two kinds of table:
- owned: every row belongs to one user and only that user sees it
- shareable: owned, plus an is_public flag — anyone sees public rows,
  the owner also sees their private ones

profiles is keyed by the user id itself, so its owner column is "id".
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TableSpec:
    name: str
    label: str  # used in user-facing messages
    owner_column: str = "user_id"
    visibility_column: Optional[str] = None
    order_by: str = "created_at"
    primary_key: str = "id"

    @property
    def shareable(self) -> bool:
        return self.visibility_column is not None


TABLES: dict[str, TableSpec] = {
    spec.name: spec
    for spec in (
        # Owned
        TableSpec("workouts", "workouts"),
        TableSpec("workout_library", "workout library"),
        TableSpec("goals", "goals"),
        TableSpec("measurements", "measurements", order_by="date"),
        TableSpec("daily_logs", "daily logs", order_by="date"),
        TableSpec("sobriety", "sobriety trackers"),
        TableSpec("profiles", "profile", owner_column="id"),
        # Shareable
        TableSpec("blog_posts", "blog posts", visibility_column="is_public"),
        TableSpec("recipes", "recipes", visibility_column="is_public"),
        TableSpec("gallery", "gallery", visibility_column="is_public", order_by="date"),
        TableSpec(
            "travel", "travel entries", visibility_column="is_public", order_by="date_visited"
        ),
    )
}


def get_table(name: str) -> TableSpec:
    try:
        return TABLES[name]
    except KeyError:
        raise ValueError(f"Unknown table: {name}") from None
