"""
Shared pytest fixtures for all tests.

This module provides:
- An in-memory SQLite database with the full schema and seeded activities
- RecordStore subclasses that count writes and inject failures
- Master data: two sections, two vendors, workers, blocks, materials and dosage rules
- Caller contexts for each role
- A registration factory and a fixed-clock submission engine
"""
import os
import tempfile

os.environ.setdefault("DB_ERROR_LOG", os.path.join(tempfile.gettempdir(), "plantation_test_db_errors.log"))

import pytest
from datetime import date
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from constants.general_constants import Role, RegistrationStatus
from db.record_store import RecordStore
from db.seed import create_schema, seed_reference_data
from models.master_data_models import ActivityType, ActivityStage, Block, Section, Vendor, VendorAssignment, Worker
from models.material_models import Material, MaterialRule
from models.registration_models import BlockRegistration
from models.users_models import User
from schemas.caller_schemas import CallerContext
from services.registration_services import derive_progress
from services.transaction_services import TransactionSubmissionEngine
from utils.errors import StoreFailure


TODAY = date(2025, 6, 15)
WORK_DATE = date(2025, 6, 10)


# ============================================================
# Store Fixtures
# ============================================================

class CountingStore(RecordStore):
    """RecordStore that records every write call as (operation, table name)."""

    def __init__(self, db):
        super().__init__(db)
        self.writes = []

    def reset(self):
        self.writes.clear()

    def insert(self, table, record):
        self.writes.append(("insert", table.__tablename__))
        return super().insert(table, record)

    def insert_many(self, table, records):
        self.writes.append(("insert_many", table.__tablename__))
        return super().insert_many(table, records)

    def update(self, table, record_id, patch):
        self.writes.append(("update", table.__tablename__))
        return super().update(table, record_id, patch)

    def update_where(self, table, values, *criteria):
        self.writes.append(("update_where", table.__tablename__))
        return super().update_where(table, values, *criteria)

    def delete(self, table, ids):
        self.writes.append(("delete", table.__tablename__))
        return super().delete(table, ids)


class FaultyStore(CountingStore):
    """
    Fails insert_many on the tables in `fail_insert_on` and delete on the
    tables in `fail_delete_on`. Successful deletes are kept in `deleted`.
    """

    def __init__(self, db, fail_insert_on=(), fail_delete_on=()):
        super().__init__(db)
        self.fail_insert_on = set(fail_insert_on)
        self.fail_delete_on = set(fail_delete_on)
        self.deleted = []

    def insert_many(self, table, records):
        if table.__tablename__ in self.fail_insert_on:
            self.writes.append(("insert_many", table.__tablename__))
            raise StoreFailure(f"injected failure on {table.__tablename__}")
        return super().insert_many(table, records)

    def delete(self, table, ids):
        if table.__tablename__ in self.fail_delete_on:
            self.writes.append(("delete", table.__tablename__))
            raise StoreFailure(f"injected delete failure on {table.__tablename__}")
        super().delete(table, ids)
        self.deleted.append((table.__tablename__, [ids] if isinstance(ids, int) else list(ids)))


class RacingStore(CountingStore):
    """
    Applies `concurrent` (registration id -> patch) straight to the database
    right after the transaction header is inserted, as another user's
    submission landing between validation and the registry update would.
    """

    def __init__(self, db, concurrent):
        super().__init__(db)
        self.concurrent = concurrent
        self.deleted = []

    def insert(self, table, record):
        row = super().insert(table, record)
        if table.__tablename__ == "transactions":
            other_user = RecordStore(self.db)
            for registration_id, patch in self.concurrent.items():
                other_user.update(BlockRegistration, registration_id, patch)
        return row

    def delete(self, table, ids):
        super().delete(table, ids)
        self.deleted.append((table.__tablename__, [ids] if isinstance(ids, int) else list(ids)))


@pytest.fixture
def engine():
    db_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(db_engine)
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def session(engine):
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    db = SessionLocal()
    seed_reference_data(db)
    yield db
    db.close()


@pytest.fixture
def store(session, master_data) -> CountingStore:
    """Counting store over the seeded database; writes from seeding are not counted."""
    return CountingStore(session)


@pytest.fixture
def faulty_store_factory(session, master_data):
    def make(fail_insert_on=(), fail_delete_on=()):
        return FaultyStore(session, fail_insert_on=fail_insert_on, fail_delete_on=fail_delete_on)
    return make


@pytest.fixture
def racing_store_factory(session, master_data):
    def make(concurrent):
        return RacingStore(session, concurrent)
    return make


# ============================================================
# Master Data Fixtures
# ============================================================

@pytest.fixture
def master_data(session) -> dict:
    """
    Two sections, two vendors (V1 assigned to section S1 for every activity,
    V2 without assignments), workers, blocks, users, materials and rules.
    Returns the ids keyed by a short name.
    """
    seed = RecordStore(session)
    ids = {}

    activities = {row["code"]: row for row in seed.query(ActivityType)}
    stages = {row["code"]: row for row in seed.query(ActivityStage)}
    ids["activity"] = {code: row["id"] for code, row in activities.items()}
    ids["stage"] = {code: row["id"] for code, row in stages.items()}

    ids["s1"] = seed.insert(Section, {"code": "S1", "name": "Section One"})["id"]
    ids["s2"] = seed.insert(Section, {"code": "S2", "name": "Section Two"})["id"]

    ids["v1"] = seed.insert(Vendor, {"code": "V1", "name": "Tani Makmur"})["id"]
    ids["v2"] = seed.insert(Vendor, {"code": "V2", "name": "Sumber Jaya"})["id"]
    seed.insert_many(VendorAssignment, [
        {"vendor_id": ids["v1"], "section_id": ids["s1"], "activity_type_id": activity_id}
        for activity_id in ids["activity"].values()
    ])

    ids["w1"] = seed.insert(Worker, {"vendor_id": ids["v1"], "worker_code": "W1", "name": "Budi"})["id"]
    ids["w2"] = seed.insert(Worker, {"vendor_id": ids["v1"], "worker_code": "W2", "name": "Sari"})["id"]
    ids["w_inactive"] = seed.insert(
        Worker, {"vendor_id": ids["v1"], "worker_code": "W3", "name": "Agus", "is_active": False}
    )["id"]
    ids["w_other"] = seed.insert(Worker, {"vendor_id": ids["v2"], "worker_code": "W4", "name": "Dewi"})["id"]

    ids["b1"] = seed.insert(Block, {
        "code": "B-001", "name": "Block 1", "zone": "North", "area_ha": 10.0,
        "crop_category": "PC", "variety": "PS862", "section_id": ids["s1"],
    })["id"]
    ids["b2"] = seed.insert(Block, {
        "code": "B-002", "name": "Block 2", "zone": "North", "area_ha": 8.0,
        "crop_category": "RC", "variety": "BL", "section_id": ids["s1"],
    })["id"]
    ids["b3"] = seed.insert(Block, {
        "code": "B-101", "name": "Block 101", "zone": "South", "area_ha": 5.0,
        "crop_category": "PC", "variety": "PS881", "section_id": ids["s2"],
    })["id"]

    ids["admin_user"] = seed.insert(User, {"username": "admin", "full_name": "Admin", "role": Role.ADMIN.value})["id"]
    ids["staff_user"] = seed.insert(User, {
        "username": "head.s1", "full_name": "Head S1", "role": Role.SECTION_HEAD.value, "section_id": ids["s1"],
    })["id"]
    ids["vendor_user"] = seed.insert(User, {
        "username": "vendor.v1", "full_name": "Vendor V1", "role": Role.VENDOR.value, "vendor_id": ids["v1"],
    })["id"]

    ids["glyphosate"] = seed.insert(Material, {"code": "GLY", "name": "Glyphosate", "category": "herbicide", "unit": "liter"})["id"]
    ids["ametryn"] = seed.insert(Material, {"code": "AMT", "name": "Ametryn", "category": "herbicide", "unit": "liter"})["id"]
    ids["urea"] = seed.insert(Material, {"code": "UREA", "name": "Urea", "category": "fertilizer", "unit": "kg"})["id"]

    weed_control = ids["activity"]["WEED_CONTROL"]
    pre = ids["stage"]["PRE_EMERGENCE"]
    post = ids["stage"]["POST_EMERGENCE"]
    ids["rule_gly"] = seed.insert(MaterialRule, {
        "activity_type_id": weed_control, "material_id": ids["glyphosate"], "stage_id": pre,
        "default_dosage": 0.5, "unit": "liter", "required": True,
    })["id"]
    ids["rule_amt_a"] = seed.insert(MaterialRule, {
        "activity_type_id": weed_control, "material_id": ids["ametryn"], "stage_id": pre,
        "crop_category": "PC", "alternative_option": "Plan A", "default_dosage": 1.5, "unit": "liter",
    })["id"]
    ids["rule_amt_b"] = seed.insert(MaterialRule, {
        "activity_type_id": weed_control, "material_id": ids["ametryn"], "stage_id": post,
        "crop_category": "RC", "alternative_option": "Plan B", "default_dosage": 2.0, "unit": "liter",
    })["id"]
    ids["rule_urea"] = seed.insert(MaterialRule, {
        "activity_type_id": ids["activity"]["PUPUK"], "material_id": ids["urea"],
        "default_dosage": 200.0, "unit": "kg", "required": True,
    })["id"]
    return ids


@pytest.fixture
def activities(master_data) -> dict:
    return master_data["activity"]


# ============================================================
# Caller Fixtures
# ============================================================

@pytest.fixture
def admin(master_data) -> CallerContext:
    return CallerContext(user_id=master_data["admin_user"], role=Role.ADMIN, display_name="Admin")


@pytest.fixture
def section_head(master_data) -> CallerContext:
    return CallerContext(user_id=master_data["staff_user"], role=Role.SECTION_HEAD, section_id=master_data["s1"])


@pytest.fixture
def other_section_head(master_data) -> CallerContext:
    return CallerContext(user_id=99, role=Role.SUPERVISOR, section_id=master_data["s2"])


@pytest.fixture
def vendor_caller(master_data) -> CallerContext:
    return CallerContext(user_id=master_data["vendor_user"], role=Role.VENDOR, vendor_id=master_data["v1"])


@pytest.fixture
def unassigned_vendor(master_data) -> CallerContext:
    return CallerContext(user_id=98, role=Role.VENDOR, vendor_id=master_data["v2"])


# ============================================================
# Registration and Engine Fixtures
# ============================================================

@pytest.fixture
def make_registration(session, master_data):
    """Inserts a registration directly, bypassing the registry's checks."""
    seed = RecordStore(session)

    def make(block="b1", activity="WEEDING", execution_number=1, target_area=10.0,
             completed_area=0.0, status=None, target_month="2025-06"):
        block_row = seed.get(Block, master_data[block])
        percent, derived = derive_progress(target_area, completed_area)
        return seed.insert(BlockRegistration, {
            "block_id": block_row["id"],
            "activity_type_id": master_data["activity"][activity],
            "execution_number": execution_number,
            "section_id": block_row["section_id"],
            "crop_category": block_row["crop_category"],
            "variety": block_row["variety"],
            "target_month": target_month,
            "target_area": target_area,
            "completed_area": completed_area,
            "percent_complete": percent,
            "status": (status or derived).value,
        })

    return make


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_engine(clock):
    def make(store, **kwargs):
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("today", lambda: TODAY)
        kwargs.setdefault("cooldown_seconds", 3)
        kwargs.setdefault("lookback_days", 183)
        return TransactionSubmissionEngine(store, **kwargs)
    return make


@pytest.fixture
def make_request(master_data):
    """Plain-mapping submission request with sensible defaults."""
    def make(allocations, kind="weeding", activity="WEEDING", **overrides):
        request = {
            "kind": kind,
            "date": WORK_DATE,
            "vendor_id": master_data["v1"],
            "activity_type_id": master_data["activity"][activity],
            "allocations": [
                {"registration_id": registration_id, "area_worked": area}
                for registration_id, area in allocations
            ],
            "workers": {"mode": "manual", "count": 5},
        }
        if kind == "weeding":
            request["execution_number"] = 1
        if activity in ("WEEDING", "KELENTEK", "WEED_CONTROL"):
            request["condition"] = "Moderate"
        request.update(overrides)
        return request
    return make
