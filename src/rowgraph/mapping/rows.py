"""Row source over a DB-API cursor.

Reads the cursor to the end on construction, so the connection is free for
the next statement before any row is materialized.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any


class RowSource:
    """Fetched rows plus a case-insensitive label → position map."""

    def __init__(self, cursor: Any) -> None:
        description = getattr(cursor, "description", None) or ()
        self._positions = {str(column[0]).lower(): i for i, column in enumerate(description)}
        self.rows: list[Sequence[Any]] = list(cursor.fetchall()) if description else []

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(self._positions)

    def has_column(self, label: str) -> bool:
        return label.lower() in self._positions

    def value(self, row: Sequence[Any], label: str) -> Any:
        return row[self._positions[label.lower()]]

    def as_dict(self, row: Sequence[Any]) -> dict[str, Any]:
        return {label: row[i] for label, i in self._positions.items()}

    def first(self) -> Sequence[Any] | None:
        return self.rows[0] if self.rows else None

    def __iter__(self) -> Iterator[Sequence[Any]]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def __repr__(self) -> str:
        return f"RowSource(labels={self.labels!r}, rows={len(self.rows)})"


__all__ = ["RowSource"]
