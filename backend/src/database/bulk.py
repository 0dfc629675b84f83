"""
Location History Import - Bulk Insert Helpers
Dialect-aware "insert, skip on conflict" for high-volume tables.
"""

from typing import Any, Dict, List, Sequence, Type

from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from models.base import Base


def normalize_rows(rows: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Give every row the same key set.

    executemany binds one parameter shape per statement; a row missing a key
    that another row has is filled with None so no column value can leak
    between rows of the same write.

    Args:
        rows: Column-keyed row mappings with possibly different keys

    Returns:
        New list of rows sharing the union of all keys
    """
    columns: Dict[str, None] = {}
    for row in rows:
        for key in row:
            columns.setdefault(key, None)
    return [{key: row.get(key) for key in columns} for row in rows]


def insert_ignore(session: Session, model: Type[Base], rows: Sequence[Dict[str, Any]]) -> int:
    """
    Insert rows, silently skipping any that violate a unique index.

    Args:
        session: SQLAlchemy session (the statement joins its transaction)
        model: ORM class whose table receives the rows
        rows: Column-keyed row mappings

    Returns:
        Number of rows actually inserted (duplicates excluded)
    """
    if not rows:
        return 0

    table = model.__table__
    params = normalize_rows(rows)
    dialect = session.get_bind().dialect.name

    # RETURNING yields one row per inserted record, skipped conflicts yield none
    if dialect == 'postgresql':
        stmt = pg_insert(table).on_conflict_do_nothing().returning(table.c.id)
        return len(session.execute(stmt, params).all())

    if dialect == 'sqlite':
        stmt = sqlite_insert(table).on_conflict_do_nothing().returning(table.c.id)
        return len(session.execute(stmt, params).all())

    # MySQL has no RETURNING; PyMySQL sums affected rows over the executemany batch
    if dialect in ('mysql', 'mariadb'):
        stmt = mysql_insert(table).prefix_with('IGNORE')
        return session.execute(stmt, params).rowcount

    raise NotImplementedError(f"insert_ignore is not supported for dialect '{dialect}'")
