import logging
from constants.general_constants import RollbackOutcome


logger = logging.getLogger(__name__)


class CompensatingUnitOfWork:
    """
    Records every insert made through it so a failed multi-table write can be
    undone by deleting those rows in reverse order.

    The store commits each call separately, so this is compensation rather
    than a database transaction: rows are visible to other sessions until the
    rollback deletes them. A store that supports real transactions can replace
    this class without touching the callers.
    """

    def __init__(self, store):
        self.store = store
        self._inserted: list[tuple[type, list[int]]] = []
        self.leftovers: list[tuple[str, list[int]]] = []

    def insert(self, table, record: dict) -> dict:
        row = self.store.insert(table, record)
        self._inserted.append((table, [row["id"]]))
        return row

    def insert_many(self, table, records: list[dict]) -> list[dict]:
        if not records:
            return []
        rows = self.store.insert_many(table, records)
        self._inserted.append((table, [row["id"] for row in rows]))
        return rows

    @property
    def inserted(self) -> list[tuple[str, list[int]]]:
        return [(table.__tablename__, ids) for table, ids in self._inserted]

    def rollback(self) -> RollbackOutcome:
        """
        Deletes recorded rows newest first. Stops at the first failed delete
        and keeps the rows that could not be removed in `leftovers`.
        """
        while self._inserted:
            table, ids = self._inserted[-1]
            try:
                self.store.delete(table, ids)
            except Exception as e:
                self.leftovers = self.inserted
                logger.error(
                    f"Compensating delete on {table.__tablename__} {ids} failed: {e}. "
                    f"Rows left behind: {self.leftovers}"
                )
                return RollbackOutcome.ROLLBACK_FAILED
            self._inserted.pop()
        return RollbackOutcome.ROLLED_BACK

    def commit(self) -> None:
        """Forget the recorded rows; they are now part of a finished write."""
        self._inserted.clear()
