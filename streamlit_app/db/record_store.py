from typing import Any, Iterable, Optional, Union
from sqlalchemy import select, update, delete
from sqlalchemy.orm import Session
from utils.db_transaction import transactional


def as_record(obj) -> dict:
    """Plain dict of a mapped instance's column values."""
    return {column.key: getattr(obj, column.key) for column in obj.__table__.columns}


class RecordStore:
    """
    Table-level access to the database for the submission workflow.

    Tables are passed as mapped model classes, filters as SQLAlchemy criteria
    (equality, ranges, in_(), is_(None), or_() ...). Every write commits on its
    own: there is no transaction spanning several calls, callers that need
    all-or-nothing behaviour compensate themselves (see utils.unit_of_work).
    """

    def __init__(self, db: Session):
        self.db = db

    @transactional
    def insert(self, table, record: dict) -> dict:
        obj = table(**record)
        self.db.add(obj)
        self.db.flush()
        row = as_record(obj)
        self.db.commit()
        return row

    @transactional
    def insert_many(self, table, records: Iterable[dict]) -> list[dict]:
        objs = [table(**record) for record in records]
        self.db.add_all(objs)
        self.db.flush()
        rows = [as_record(obj) for obj in objs]
        self.db.commit()
        return rows

    @transactional
    def update(self, table, record_id: int, patch: dict) -> Optional[dict]:
        self.db.execute(
            update(table.__table__).where(table.__table__.c.id == record_id).values(**patch)
        )
        self.db.commit()
        return self.get(table, record_id)

    @transactional
    def update_where(self, table, values: dict, *criteria) -> int:
        """Conditional UPDATE; returns the number of matched rows."""
        result = self.db.execute(update(table.__table__).where(*criteria).values(**values))
        self.db.commit()
        return result.rowcount

    @transactional
    def delete(self, table, ids: Union[int, Iterable[int]]) -> None:
        ids = [ids] if isinstance(ids, int) else list(ids)
        if not ids:
            return
        self.db.execute(delete(table.__table__).where(table.__table__.c.id.in_(ids)))
        self.db.commit()

    @transactional
    def get(self, table, record_id: int) -> Optional[dict]:
        row = self.db.execute(
            select(table.__table__).where(table.__table__.c.id == record_id)
        ).mappings().first()
        return dict(row) if row else None

    @transactional
    def query(self, table, *criteria, order_by: Optional[list[Any]] = None) -> list[dict]:
        stmt = select(table.__table__)
        if criteria:
            stmt = stmt.where(*criteria)
        if order_by:
            stmt = stmt.order_by(*order_by)
        return [dict(row) for row in self.db.execute(stmt).mappings().all()]
