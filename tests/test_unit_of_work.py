"""
Tests for the compensating unit of work and the store error wrapper.
"""
import pytest

from constants.general_constants import RollbackOutcome
from models.master_data_models import Section, Vendor, Worker
from utils.errors import StoreFailure
from utils.unit_of_work import CompensatingUnitOfWork


class TestCompensatingUnitOfWork:

    def test_rollback_deletes_newest_first(self, faulty_store_factory):
        store = faulty_store_factory()
        uow = CompensatingUnitOfWork(store)
        section = uow.insert(Section, {"code": "S9", "name": "Nine"})
        vendor = uow.insert(Vendor, {"code": "V9", "name": "Nine"})
        workers = uow.insert_many(Worker, [
            {"vendor_id": vendor["id"], "worker_code": "X1", "name": "A"},
            {"vendor_id": vendor["id"], "worker_code": "X2", "name": "B"},
        ])

        assert uow.rollback() == RollbackOutcome.ROLLED_BACK
        assert store.deleted == [
            ("workers", [w["id"] for w in workers]),
            ("vendors", [vendor["id"]]),
            ("sections", [section["id"]]),
        ]
        assert store.get(Section, section["id"]) is None
        assert uow.inserted == []

    def test_empty_insert_many_skips_store(self, store):
        uow = CompensatingUnitOfWork(store)

        assert uow.insert_many(Worker, []) == []
        assert store.writes == []
        assert uow.inserted == []

    def test_failed_delete_stops_and_keeps_leftovers(self, faulty_store_factory):
        store = faulty_store_factory(fail_delete_on={"vendors"})
        uow = CompensatingUnitOfWork(store)
        section = uow.insert(Section, {"code": "S9", "name": "Nine"})
        vendor = uow.insert(Vendor, {"code": "V9", "name": "Nine"})
        worker = uow.insert(Worker, {"vendor_id": vendor["id"], "worker_code": "X1", "name": "A"})

        assert uow.rollback() == RollbackOutcome.ROLLBACK_FAILED
        assert store.deleted == [("workers", [worker["id"]])]
        assert uow.leftovers == [("sections", [section["id"]]), ("vendors", [vendor["id"]])]
        assert store.get(Section, section["id"]) is not None

    def test_commit_forgets_rows(self, faulty_store_factory):
        store = faulty_store_factory()
        uow = CompensatingUnitOfWork(store)
        section = uow.insert(Section, {"code": "S9", "name": "Nine"})

        uow.commit()

        assert uow.rollback() == RollbackOutcome.ROLLED_BACK
        assert store.deleted == []
        assert store.get(Section, section["id"]) is not None


class TestRecordStore:

    def test_integrity_error_becomes_store_failure(self, store):
        store.insert(Section, {"code": "DUP", "name": "First"})

        with pytest.raises(StoreFailure):
            store.insert(Section, {"code": "DUP", "name": "Second"})

        # the session is usable again after the rollback
        assert [row["name"] for row in store.query(Section, Section.code == "DUP")] == ["First"]

    def test_update_and_delete(self, store):
        section = store.insert(Section, {"code": "UPD", "name": "Before"})

        assert store.update(Section, section["id"], {"name": "After"})["name"] == "After"
        store.delete(Section, section["id"])
        assert store.get(Section, section["id"]) is None

    def test_update_where_returns_matched_rows(self, store):
        store.insert_many(Section, [{"code": "A1", "name": "A"}, {"code": "A2", "name": "A"}])

        assert store.update_where(Section, {"name": "B"}, Section.name == "A") == 2
        assert store.update_where(Section, {"name": "C"}, Section.name == "A") == 0
