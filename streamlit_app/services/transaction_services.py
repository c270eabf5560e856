import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Optional
from config import AREA_EPSILON, SUBMISSION_COOLDOWN_SECONDS, SUBMISSION_LOOKBACK_DAYS
from constants.general_constants import RegistrationStatus, RollbackOutcome
from models.transaction_models import Transaction, TransactionBlock, TransactionMaterial, TransactionWorker
from schemas.caller_schemas import CallerContext
from schemas.registration_schemas import RegistrationRead
from schemas.submission_schemas import (
    HarvestSubmission,
    NamedWorkers,
    SubmissionResult,
    TransactionRecord,
    WeedingSubmission,
    parse_submission_request,
)
from services.access_services import (
    ensure_can_submit_for_vendor,
    ensure_can_work_registration,
    vendor_section_ids,
)
from services.master_data_services import get_activity_type, get_vendor, get_workers, get_materials
from services.registration_services import apply_completed_area, find_registration, remaining_area
from utils.errors import (
    DuplicateSubmission,
    OverAllocation,
    RollbackFailed,
    StoreFailure,
    SubmissionError,
    ValidationFailed,
)
from utils.unit_of_work import CompensatingUnitOfWork


logger = logging.getLogger(__name__)


def generate_transaction_code(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"TRX-{now.strftime('%Y%m%d%H%M%S%f')}"


@dataclass
class _ValidatedSubmission:
    request: object
    activity: dict
    registrations: list[RegistrationRead]
    materials: list[dict] = field(default_factory=list)


class TransactionSubmissionEngine:
    """
    Records one vendor work transaction: header, block allocations, registry
    progress, materials and workers.

    Everything is validated before the first write. Writes go through a
    CompensatingUnitOfWork; on failure the inserted rows are deleted newest
    first. Registration progress applied before the failure is NOT reverted:
    those registrations stay advanced even though the transaction row is gone.

    The cooldown guard against double submits lives on the engine. A UI that
    rebuilds the engine on every rerun passes the same submit_log each time.
    """

    def __init__(
        self,
        store,
        cooldown_seconds: float = SUBMISSION_COOLDOWN_SECONDS,
        lookback_days: int = SUBMISSION_LOOKBACK_DAYS,
        clock: Callable[[], float] = time.monotonic,
        today: Callable[[], date] = date.today,
        submit_log: Optional[dict] = None,
    ):
        self.store = store
        self.cooldown_seconds = cooldown_seconds
        self.lookback_days = lookback_days
        self.clock = clock
        self.today = today
        # user_id -> clock value of the last submit that passed validation
        self._last_submit: dict[int, float] = submit_log if submit_log is not None else {}

    def submit(self, request, caller: CallerContext) -> SubmissionResult:
        try:
            self._check_cooldown(caller)
            parsed = parse_submission_request(request)
            validated = self._validate(parsed, caller)
            self._last_submit[caller.user_id] = self.clock()
        except SubmissionError as e:
            logger.info(f"Submission by user {caller.user_id} rejected ({e.kind.value}): {e.message}")
            return SubmissionResult.failed(e)

        try:
            record, registrations = self._write(validated, caller)
        except SubmissionError as e:
            return SubmissionResult.failed(e)

        logger.info(
            f"Transaction {record.code} saved by user {caller.user_id}: "
            f"{record.total_area:g} ha on {len(record.allocations)} block(s), {record.total_workers} worker(s)"
        )
        return SubmissionResult.ok(record, registrations)

    # === Guards ===

    def _check_cooldown(self, caller: CallerContext) -> None:
        now = self.clock()
        last = self._last_submit.get(caller.user_id)
        if last is not None and now - last < self.cooldown_seconds:
            raise DuplicateSubmission(
                f"A transaction was just submitted. Wait {self.cooldown_seconds:g} seconds before submitting again."
            )

    # === Validation phase (reads only) ===

    def _validate(self, request, caller: CallerContext) -> _ValidatedSubmission:
        allocations = request.allocations
        if not allocations:
            raise ValidationFailed("Select at least one block.")
        for allocation in allocations:
            if allocation.area_worked <= 0:
                raise ValidationFailed(
                    f"Fill in a worked area above zero for registration #{allocation.registration_id}."
                )
        registration_ids = [a.registration_id for a in allocations]
        if len(set(registration_ids)) != len(registration_ids):
            raise ValidationFailed("Each block registration can appear only once in a transaction.")

        ensure_can_submit_for_vendor(caller, request.vendor_id)
        activity = get_activity_type(self.store, request.activity_type_id)
        get_vendor(self.store, request.vendor_id)

        registrations = self._check_registrations(request, activity, caller)
        self._check_workers(request)

        if activity["requires_condition"] and request.condition is None:
            raise ValidationFailed(f"Select the field condition for {activity['name']}.")

        self._check_activity_kind(request, activity)
        self._check_date(request.date)

        materials = self._resolve_material_rows(request, activity)
        return _ValidatedSubmission(
            request=request,
            activity=activity,
            registrations=registrations,
            materials=materials,
        )

    def _check_registrations(self, request, activity: dict, caller: CallerContext) -> list[RegistrationRead]:
        allowed_sections = None
        if caller.is_vendor:
            allowed_sections = vendor_section_ids(self.store, caller.vendor_id, activity["id"])

        registrations = []
        for allocation in request.allocations:
            registration = find_registration(self.store, allocation.registration_id)
            ensure_can_work_registration(self.store, caller, registration, allowed_sections)

            if registration.activity_type_id != activity["id"]:
                raise ValidationFailed(
                    f"Registration #{registration.id} is not registered for {activity['name']}."
                )
            if registration.execution_number != request.execution_number:
                raise ValidationFailed(
                    f"Registration #{registration.id} is execution {registration.execution_number}, "
                    f"not {request.execution_number}."
                )
            if registration.status == RegistrationStatus.CANCELLED:
                raise ValidationFailed(f"Registration #{registration.id} is cancelled.")
            if registration.status == RegistrationStatus.COMPLETED:
                raise ValidationFailed(f"Registration #{registration.id} is already completed.")

            remaining = remaining_area(registration)
            if allocation.area_worked > remaining + AREA_EPSILON:
                raise OverAllocation(registration.id, allocation.area_worked, remaining)
            registrations.append(registration)
        return registrations

    def _check_workers(self, request) -> None:
        if request.worker_count <= 0:
            raise ValidationFailed("Enter the number of workers or pick them from the list.")
        if not isinstance(request.workers, NamedWorkers):
            return

        worker_ids = request.workers.worker_ids
        if len(set(worker_ids)) != len(worker_ids):
            raise ValidationFailed("A worker can be listed only once.")
        workers = get_workers(self.store, worker_ids)
        for worker_id in worker_ids:
            worker = workers.get(worker_id)
            if not worker or not worker["is_active"]:
                raise ValidationFailed(f"Worker #{worker_id} does not exist or is inactive.")
            if worker["vendor_id"] != request.vendor_id:
                raise ValidationFailed(f"Worker {worker['name']} does not work for this vendor.")

    def _check_activity_kind(self, request, activity: dict) -> None:
        is_harvest = isinstance(request, HarvestSubmission)
        if activity["requires_yield"] and not is_harvest:
            raise ValidationFailed(f"{activity['name']} needs both estimated and actual yield.")
        if is_harvest and not activity["requires_yield"]:
            raise ValidationFailed(f"{activity['name']} does not record yields.")

        is_round = isinstance(request, WeedingSubmission)
        if activity["allows_multiple_execution"] and not is_round:
            raise ValidationFailed(f"Select which round of {activity['name']} was worked.")
        if is_round and not activity["allows_multiple_execution"]:
            raise ValidationFailed(f"{activity['name']} is not executed in rounds.")
        if request.execution_number > activity["max_execution"]:
            raise ValidationFailed(
                f"{activity['name']} has at most {activity['max_execution']} rounds."
            )

    def _check_date(self, work_date: date) -> None:
        today = self.today()
        if work_date > today:
            raise ValidationFailed("The transaction date cannot be in the future.")
        earliest = today - timedelta(days=self.lookback_days)
        if work_date < earliest:
            raise ValidationFailed(f"The transaction date cannot be earlier than {earliest.isoformat()}.")

    def _resolve_material_rows(self, request, activity: dict) -> list[dict]:
        entries = [
            m for m in request.materials
            if m.material_id is not None and m.dosage_per_ha is not None and m.dosage_per_ha > 0
        ]
        if activity["requires_materials"] and not entries:
            raise ValidationFailed(f"{activity['name']} needs at least one material with a dosage.")
        if not entries:
            return []

        known = get_materials(self.store, sorted({m.material_id for m in entries}))
        total_area = request.total_area
        rows = []
        for entry in entries:
            material = known.get(entry.material_id)
            if not material:
                raise ValidationFailed(f"Material #{entry.material_id} does not exist.")
            rows.append({
                "material_id": entry.material_id,
                "dosage_per_ha": entry.dosage_per_ha,
                "total_quantity": entry.dosage_per_ha * total_area,
                "unit": entry.unit or material["unit"],
            })
        return rows

    # === Write phase ===

    def _header_record(self, validated: _ValidatedSubmission, caller: CallerContext) -> dict:
        request = validated.request
        first = validated.registrations[0]
        variety = request.variety_override
        if validated.activity["records_variety"] and not variety:
            variety = first.variety

        return {
            "code": generate_transaction_code(),
            "date": request.date,
            "vendor_id": request.vendor_id,
            "activity_type_id": request.activity_type_id,
            "section_id": first.section_id,
            "execution_number": request.execution_number,
            "condition": request.condition.value if request.condition else None,
            "estimated_yield": getattr(request, "estimated_yield", None),
            "actual_yield": getattr(request, "actual_yield", None),
            "variety_override": variety,
            "total_area": request.total_area,
            "total_workers": request.worker_count,
            "note": request.note,
            "created_by": caller.user_id,
        }

    def _write(self, validated: _ValidatedSubmission, caller: CallerContext):
        request = validated.request
        uow = CompensatingUnitOfWork(self.store)
        advanced: list[RegistrationRead] = []

        try:
            header = uow.insert(Transaction, self._header_record(validated, caller))
            transaction_id = header["id"]

            allocation_rows = uow.insert_many(TransactionBlock, [
                {"transaction_id": transaction_id, "registration_id": a.registration_id, "area_worked": a.area_worked}
                for a in request.allocations
            ])

            for allocation in request.allocations:
                advanced.append(
                    apply_completed_area(self.store, allocation.registration_id, allocation.area_worked)
                )

            material_rows = uow.insert_many(TransactionMaterial, [
                {**row, "transaction_id": transaction_id} for row in validated.materials
            ])

            if isinstance(request.workers, NamedWorkers):
                worker_records = [
                    {"transaction_id": transaction_id, "worker_id": worker_id, "count": 1}
                    for worker_id in request.workers.worker_ids
                ]
            else:
                worker_records = [
                    {"transaction_id": transaction_id, "worker_id": None, "count": request.workers.count}
                ]
            worker_rows = uow.insert_many(TransactionWorker, worker_records)

        except SubmissionError as e:
            raise self._compensate(uow, e, advanced)
        except Exception as e:
            raise self._compensate(uow, StoreFailure(f"Saving the transaction failed: {e}"), advanced) from e

        uow.commit()
        record = TransactionRecord(
            **header,
            allocations=allocation_rows,
            materials=material_rows,
            workers=worker_rows,
        )
        return record, advanced

    def _compensate(self, uow: CompensatingUnitOfWork, error: SubmissionError, advanced: list[RegistrationRead]) -> SubmissionError:
        created = uow.inserted
        outcome = uow.rollback()

        if advanced:
            logger.warning(
                "Registration progress was applied but is not reverted by the rollback: "
                + ", ".join(f"#{r.id} now {r.completed_area:g}/{r.target_area:g} ha" for r in advanced)
            )

        if outcome == RollbackOutcome.ROLLBACK_FAILED:
            failure = RollbackFailed(error, uow.leftovers)
            logger.error(f"Transaction rollback failed after {error.kind.value}: {failure.message}")
            return failure

        logger.warning(f"Transaction write failed ({error.kind.value}: {error.message}); removed {created}")
        error.rollback = RollbackOutcome.ROLLED_BACK
        return error


# === Read side ===

def get_transaction_record(store, transaction_id: int) -> Optional[TransactionRecord]:
    header = store.get(Transaction, transaction_id)
    if not header:
        return None
    return TransactionRecord(
        **header,
        allocations=store.query(TransactionBlock, TransactionBlock.transaction_id == transaction_id, order_by=[TransactionBlock.id]),
        materials=store.query(TransactionMaterial, TransactionMaterial.transaction_id == transaction_id, order_by=[TransactionMaterial.id]),
        workers=store.query(TransactionWorker, TransactionWorker.transaction_id == transaction_id, order_by=[TransactionWorker.id]),
    )

def list_transactions(store, caller: CallerContext, limit: Optional[int] = None) -> list[dict]:
    """Transaction headers, newest first: vendors see their own, section staff their section."""
    criteria = []
    if caller.is_vendor:
        criteria.append(Transaction.vendor_id == caller.vendor_id)
    elif caller.is_section_staff:
        criteria.append(Transaction.section_id == caller.section_id)

    rows = store.query(Transaction, *criteria, order_by=[Transaction.date.desc(), Transaction.id.desc()])
    return rows[:limit] if limit else rows
