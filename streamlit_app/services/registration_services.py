import logging
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import case, func
from config import AREA_EPSILON
from constants.general_constants import RegistrationStatus, CLOSED_STATUSES
from models.registration_models import BlockRegistration
from schemas.caller_schemas import CallerContext
from schemas.registration_schemas import RegistrationCreate, RegistrationRead
from services.access_services import registration_scope, ensure_can_manage_section
from services.master_data_services import get_activity_type, get_block
from utils.errors import OverAllocation, RegistrationNotFound, ValidationFailed


logger = logging.getLogger(__name__)

# Highest percent an unfinished registration can show
OPEN_PERCENT_CAP = 99.99


def derive_progress(target_area: float, completed_area: float) -> tuple[float, RegistrationStatus]:
    """
    Percent complete (2 decimals) and the status it implies.

    Completion is decided on the unrounded areas: completed within
    AREA_EPSILON of the target is Completed at exactly 100. Anything short of
    that stays below 100 after rounding, so Completed iff percent >= 100.
    Cancelled is never derived, only set by admins.
    """
    if target_area <= 0:
        return 0.0, RegistrationStatus.NOT_STARTED
    if completed_area >= target_area - AREA_EPSILON:
        return 100.0, RegistrationStatus.COMPLETED
    percent = min(round(completed_area / target_area * 100, 2), OPEN_PERCENT_CAP)
    if completed_area > 0:
        return percent, RegistrationStatus.IN_PROGRESS
    return percent, RegistrationStatus.NOT_STARTED

def remaining_area(registration: RegistrationRead) -> float:
    return max(registration.target_area - registration.completed_area, 0.0)

def find_registration(store, registration_id: int) -> RegistrationRead:
    row = store.get(BlockRegistration, registration_id)
    if not row:
        raise RegistrationNotFound(registration_id)
    return RegistrationRead.model_validate(row)

def _progress_values(delta_area: float) -> dict:
    """
    SET clause for an increment, written against the row's current values so
    the read and the write happen in a single statement. Mirrors derive_progress.
    """
    c = BlockRegistration.__table__.c
    raised = c.completed_area + delta_area
    done = raised >= c.target_area - AREA_EPSILON
    # within the tolerance on either side of the target counts as the target
    completed = case((done, c.target_area), else_=raised)
    rounded = func.round(raised / c.target_area * 100, 2)
    percent = case(
        (done, 100.0),
        (rounded > OPEN_PERCENT_CAP, OPEN_PERCENT_CAP),
        else_=rounded,
    )
    status = case(
        (done, RegistrationStatus.COMPLETED.value),
        (raised > 0, RegistrationStatus.IN_PROGRESS.value),
        else_=RegistrationStatus.NOT_STARTED.value,
    )
    return {
        "completed_area": completed,
        "percent_complete": percent,
        "status": status,
        "updated_at": datetime.now(timezone.utc),
    }

def apply_completed_area(store, registration_id: int, delta_area: float) -> RegistrationRead:
    """
    Adds worked area to a registration and recomputes percent and status.

    The capacity check is part of the UPDATE's WHERE clause, so two
    concurrent submissions cannot both push the same registration past its
    target. Area landing within AREA_EPSILON above the target is clamped.
    """
    if delta_area <= 0:
        raise ValidationFailed("Worked area must be greater than zero.")

    c = BlockRegistration.__table__.c
    matched = store.update_where(
        BlockRegistration,
        _progress_values(delta_area),
        c.id == registration_id,
        c.completed_area + delta_area <= c.target_area + AREA_EPSILON,
        c.status.notin_([s.value for s in CLOSED_STATUSES]),
    )

    if matched == 0:
        current = find_registration(store, registration_id)
        if current.status == RegistrationStatus.CANCELLED:
            raise ValidationFailed(f"Registration #{registration_id} is cancelled.")
        raise OverAllocation(registration_id, delta_area, remaining_area(current))

    updated = find_registration(store, registration_id)
    logger.info(
        f"Registration #{registration_id} +{delta_area:g} ha -> "
        f"{updated.completed_area:g}/{updated.target_area:g} ha ({updated.status.value})"
    )
    return updated

def register_block_activity(store, data: RegistrationCreate, caller: CallerContext) -> RegistrationRead:
    block = get_block(store, data.block_id)
    ensure_can_manage_section(caller, block["section_id"])
    activity = get_activity_type(store, data.activity_type_id)

    if data.execution_number > 1 and not activity["allows_multiple_execution"]:
        raise ValidationFailed(f"{activity['name']} is executed only once per block.")
    if data.execution_number > activity["max_execution"]:
        raise ValidationFailed(
            f"{activity['name']} allows at most {activity['max_execution']} executions."
        )

    c = BlockRegistration
    existing = store.query(
        BlockRegistration,
        c.block_id == data.block_id,
        c.activity_type_id == data.activity_type_id,
        c.execution_number == data.execution_number,
    )
    if existing:
        raise ValidationFailed(
            f"Block {block['code']} is already registered for {activity['name']} "
            f"execution {data.execution_number}."
        )

    target_area = data.target_area if data.target_area is not None else block["area_ha"]
    if target_area > block["area_ha"] + AREA_EPSILON:
        raise ValidationFailed(
            f"Target area {target_area:g} ha exceeds block {block['code']} ({block['area_ha']:g} ha)."
        )

    percent, status = derive_progress(target_area, 0.0)
    row = store.insert(BlockRegistration, {
        "block_id": block["id"],
        "activity_type_id": activity["id"],
        "execution_number": data.execution_number,
        "section_id": block["section_id"],
        "crop_category": block["crop_category"],
        "variety": block["variety"],
        "target_month": data.target_month,
        "target_area": target_area,
        "completed_area": 0.0,
        "percent_complete": percent,
        "status": status.value,
    })
    return RegistrationRead.model_validate(row)

def list_registrations(
    store,
    caller: CallerContext,
    activity_type_id: Optional[int] = None,
    execution_number: Optional[int] = None,
    open_only: bool = False,
) -> list[RegistrationRead]:
    """Registrations visible to the caller; `open_only` drops completed and cancelled ones."""
    scope = registration_scope(store, caller, activity_type_id)
    if scope is None:
        return []

    c = BlockRegistration
    criteria = list(scope)
    if activity_type_id is not None:
        criteria.append(c.activity_type_id == activity_type_id)
    if execution_number is not None:
        criteria.append(c.execution_number == execution_number)
    if open_only:
        criteria.append(c.status.notin_([s.value for s in CLOSED_STATUSES]))

    rows = store.query(BlockRegistration, *criteria, order_by=[c.target_month, c.id])
    return [RegistrationRead.model_validate(row) for row in rows]
