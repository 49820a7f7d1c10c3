from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generator, List, Mapping, Optional

from .models import MUTABLE_FIELDS, TodoEntity
from .repositories import CountQuery, Repository


@dataclass(frozen=True)
class _Cols:
    table: str = "todos"
    id: str = "id"
    title: str = "title"
    description: str = "description"
    completed: str = "completed"
    category: str = "category"
    user_id: str = "user_id"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


_COLS = _Cols()


def _format_dt(value: datetime) -> str:
    # Fixed width so that text comparison in SQL orders like the datetimes do
    return value.isoformat(timespec="microseconds")


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} TEXT PRIMARY KEY,
                    {_COLS.title} TEXT NOT NULL,
                    {_COLS.description} TEXT NULL,
                    {_COLS.completed} INTEGER NOT NULL DEFAULT 0,
                    {_COLS.category} TEXT NULL,
                    {_COLS.user_id} TEXT NOT NULL,
                    {_COLS.created_at} TEXT NOT NULL,
                    {_COLS.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_user_id ON {_COLS.table}({_COLS.user_id})"
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_created_at ON {_COLS.table}({_COLS.created_at})"
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_updated_at ON {_COLS.table}({_COLS.updated_at})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        return {
            "id": str(row[_COLS.id]),
            "title": str(row[_COLS.title]),
            "description": row[_COLS.description],
            "completed": bool(row[_COLS.completed]),
            "category": row[_COLS.category],
            "user_id": str(row[_COLS.user_id]),
            "created_at": datetime.fromisoformat(row[_COLS.created_at]),
            "updated_at": datetime.fromisoformat(row[_COLS.updated_at]),
        }

    def _select_owned(self, conn: sqlite3.Connection, user_id: str, todo_id: str) -> Optional[sqlite3.Row]:
        return conn.execute(
            f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ? AND {_COLS.user_id} = ?",
            (todo_id, user_id),
        ).fetchone()

    def create(self, entity: TodoEntity) -> TodoEntity:
        with self._conn() as conn:
            conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.id}, {_COLS.title}, {_COLS.description}, {_COLS.completed},
                    {_COLS.category}, {_COLS.user_id}, {_COLS.created_at}, {_COLS.updated_at})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entity["id"],
                    entity["title"],
                    entity["description"],
                    1 if entity["completed"] else 0,
                    entity["category"],
                    entity["user_id"],
                    _format_dt(entity["created_at"]),
                    _format_dt(entity["updated_at"]),
                ),
            )
            row = self._select_owned(conn, entity["user_id"], entity["id"])
            assert row is not None
            return self._row_to_entity(row)

    def get(self, user_id: str, todo_id: str) -> Optional[TodoEntity]:
        with self._conn() as conn:
            row = self._select_owned(conn, user_id, todo_id)
            return self._row_to_entity(row) if row else None

    def update(
        self, user_id: str, todo_id: str, changes: Mapping[str, Any], updated_at: datetime
    ) -> Optional[TodoEntity]:
        assignments = []
        params: list = []
        for field in sorted(MUTABLE_FIELDS.intersection(changes)):
            value = changes[field]
            if field == "completed":
                value = 1 if value else 0
            assignments.append(f"{getattr(_COLS, field)} = ?")
            params.append(value)
        # MAX() on the fixed-width text keeps updated_at from moving backwards
        assignments.append(f"{_COLS.updated_at} = MAX({_COLS.updated_at}, ?)")
        params.append(_format_dt(updated_at))

        with self._conn() as conn:
            cur = conn.execute(
                f"""
                UPDATE {_COLS.table}
                SET {', '.join(assignments)}
                WHERE {_COLS.id} = ? AND {_COLS.user_id} = ?
                """,
                [*params, todo_id, user_id],
            )
            if cur.rowcount == 0:
                return None
            row = self._select_owned(conn, user_id, todo_id)
            assert row is not None
            return self._row_to_entity(row)

    def delete(self, user_id: str, todo_id: str) -> bool:
        with self._conn() as conn:
            cur = conn.execute(
                f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ? AND {_COLS.user_id} = ?",
                (todo_id, user_id),
            )
            return cur.rowcount > 0

    def list(self, user_id: str) -> List[TodoEntity]:
        with self._conn() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM {_COLS.table}
                WHERE {_COLS.user_id} = ?
                ORDER BY {_COLS.created_at} DESC
                """,
                (user_id,),
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]

    def count(self, user_id: str, query: Optional[CountQuery] = None) -> int:
        q = query or CountQuery()
        clauses = [f"{_COLS.user_id} = ?"]
        params: list = [user_id]

        if q.completed is not None:
            clauses.append(f"{_COLS.completed} = ?")
            params.append(1 if q.completed else 0)
        bounds = (
            (_COLS.created_at, ">=", q.created_from),
            (_COLS.created_at, "<", q.created_before),
            (_COLS.updated_at, ">=", q.updated_from),
            (_COLS.updated_at, "<", q.updated_before),
        )
        for column, op, value in bounds:
            if value is not None:
                clauses.append(f"{column} {op} ?")
                params.append(_format_dt(value))

        with self._conn() as conn:
            row = conn.execute(
                f"SELECT COUNT(*) AS cnt FROM {_COLS.table} WHERE {' AND '.join(clauses)}",
                params,
            ).fetchone()
            return int(row["cnt"]) if row else 0
