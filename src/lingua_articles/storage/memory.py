"""In-process RemoteStore with the backend's column defaults and unique keys.

Used for local development (``backend: memory``) and as the fake backend in
tests. Rows are copied on the way in and out so callers never alias stored
state.
"""

import copy
import itertools
import uuid
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from lingua_articles.errors import StoreRejected
from lingua_articles.models.user_profile import DEFAULT_INTERFACE_LANGUAGE, now_iso

Row = dict[str, Any]

TABLE_DEFAULTS: dict[str, dict[str, Callable[[], Any]]] = {
    "user_profiles": {
        "description": lambda: "",
        "interface_language": lambda: DEFAULT_INTERFACE_LANGUAGE.value,
        "total_articles": lambda: 0,
        "created_at": now_iso,
        "updated_at": now_iso,
    },
    "saved_articles": {
        "vocabulary": list,
        "created_at": now_iso,
    },
    "favorite_topics": {
        "count": lambda: 1,
        "updated_at": now_iso,
    },
}

UNIQUE_KEYS: dict[str, tuple[tuple[str, ...], ...]] = {
    "user_profiles": (("user_type",),),
    "favorite_topics": (("user_id", "topic"),),
}

_SEQ_FIELD = "_seq"


def _matches(row: Row, filters: Mapping[str, Any] | None) -> bool:
    return all(row.get(column) == value for column, value in (filters or {}).items())


def _public(row: Row, columns: str = "*") -> Row:
    out = {k: copy.deepcopy(v) for k, v in row.items() if k != _SEQ_FIELD}
    if columns.strip() == "*":
        return out
    wanted = [c.strip() for c in columns.split(",")]
    return {c: out.get(c) for c in wanted}


class MemoryStore:
    """Dict-of-lists table store satisfying the RemoteStore contract."""

    def __init__(self):
        self.tables: dict[str, list[Row]] = {}
        self._seq = itertools.count()

    def rows(self, table: str) -> list[Row]:
        """Snapshot of a table, for inspection."""
        return [_public(r) for r in self.tables.get(table, [])]

    def _check_unique(self, table: str, candidate: Row, ignore: Row | None = None) -> None:
        for key in UNIQUE_KEYS.get(table, ()):
            for row in self.tables.get(table, []):
                if row is ignore:
                    continue
                if all(row.get(c) == candidate.get(c) for c in key):
                    raise StoreRejected(
                        f"duplicate key value violates unique constraint on {table}{key}",
                        status_code=409,
                    )

    async def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        columns: str = "*",
        order_by: str | Sequence[str] | None = None,
        ascending: bool = True,
        limit: int | None = None,
    ) -> list[Row]:
        rows = [r for r in self.tables.get(table, []) if _matches(r, filters)]
        if order_by:
            order_columns = [order_by] if isinstance(order_by, str) else list(order_by)
            # Ties keep insertion order in the requested direction
            rows.sort(
                key=lambda r: (*(r.get(c) for c in order_columns), r[_SEQ_FIELD]),
                reverse=not ascending,
            )
        if limit is not None:
            rows = rows[:limit]
        return [_public(r, columns) for r in rows]

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        new_row: Row = {"id": str(uuid.uuid4())}
        # One timestamp per insert, like now() inside a transaction
        stamp = now_iso()
        for column, factory in TABLE_DEFAULTS.get(table, {}).items():
            new_row[column] = stamp if factory is now_iso else factory()
        new_row.update(copy.deepcopy(dict(row)))
        self._check_unique(table, new_row)
        new_row[_SEQ_FIELD] = next(self._seq)
        self.tables.setdefault(table, []).append(new_row)
        return _public(new_row)

    async def update(
        self, table: str, values: Mapping[str, Any], *, filters: Mapping[str, Any]
    ) -> list[Row]:
        updated = []
        for row in self.tables.get(table, []):
            if _matches(row, filters):
                candidate = {**row, **copy.deepcopy(dict(values))}
                self._check_unique(table, candidate, ignore=row)
                row.update(copy.deepcopy(dict(values)))
                updated.append(_public(row))
        return updated

    async def delete(self, table: str, *, filters: Mapping[str, Any]) -> list[Row]:
        rows = self.tables.get(table, [])
        removed = [r for r in rows if _matches(r, filters)]
        self.tables[table] = [r for r in rows if not _matches(r, filters)]
        return [_public(r) for r in removed]
