from sqlalchemy import select
from sqlalchemy.orm import Session
from db.base import Base
from models.master_data_models import ActivityType, ActivityStage
# Imported for their tables
from models import material_models, registration_models, transaction_models, users_models  # noqa: F401


# Capability table: what each activity asks for on a transaction
ACTIVITY_TYPES = [
    {"code": "TANAM", "name": "Planting", "records_variety": True},
    {"code": "WEEDING", "name": "Weeding", "allows_multiple_execution": True, "max_execution": 3, "requires_condition": True},
    {"code": "KELENTEK", "name": "Manual Weeding", "requires_condition": True},
    {"code": "WEED_CONTROL", "name": "Weed Control", "requires_condition": True, "requires_materials": True},
    {"code": "PUPUK", "name": "Fertilizing", "requires_materials": True},
    {"code": "PANEN", "name": "Harvest", "requires_yield": True},
]

ACTIVITY_STAGES = [
    {"code": "PRE_EMERGENCE", "name": "Pre-emergence", "sequence_order": 1},
    {"code": "POST_EMERGENCE", "name": "Post-emergence", "sequence_order": 2},
]


def create_schema(engine) -> None:
    Base.metadata.create_all(engine)

def _upsert_by_code(db: Session, model, rows: list[dict]) -> int:
    """Insert rows whose code is missing, update the rest in place."""
    changed = 0
    for row in rows:
        stmt = select(model).where(model.code == row["code"]).execution_options(populate_existing=True)
        existing = db.scalars(stmt).first()
        if existing is None:
            db.add(model(**row))
            changed += 1
            continue
        for key, value in row.items():
            if getattr(existing, key) != value:
                setattr(existing, key, value)
                changed += 1
    return changed

def seed_reference_data(db: Session) -> dict[str, int]:
    counts = {
        "activity_types": _upsert_by_code(db, ActivityType, ACTIVITY_TYPES),
        "activity_stages": _upsert_by_code(db, ActivityStage, ACTIVITY_STAGES),
    }
    db.commit()
    return counts
