import datetime as dt
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from constants.general_constants import Condition, ErrorKind, RollbackOutcome
from schemas.registration_schemas import RegistrationRead
from utils.errors import SubmissionError, ValidationFailed


# === Request ===

class BlockAllocation(BaseModel):
    registration_id: int
    area_worked: float


class ManualWorkers(BaseModel):
    mode: Literal["manual"] = "manual"
    count: int


class NamedWorkers(BaseModel):
    mode: Literal["named"] = "named"
    worker_ids: list[int]


WorkerSpec = Annotated[Union[ManualWorkers, NamedWorkers], Field(discriminator="mode")]


class MaterialEntry(BaseModel):
    material_id: Optional[int] = None
    dosage_per_ha: Optional[float] = None
    unit: Optional[str] = None


class _SubmissionBase(BaseModel):
    date: dt.date
    vendor_id: int
    activity_type_id: int
    allocations: list[BlockAllocation] = Field(default_factory=list)
    workers: WorkerSpec
    materials: list[MaterialEntry] = Field(default_factory=list)
    condition: Optional[Condition] = None
    variety_override: Optional[str] = None
    note: Optional[str] = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def total_area(self) -> float:
        return sum(a.area_worked for a in self.allocations)

    @property
    def worker_count(self) -> int:
        if isinstance(self.workers, ManualWorkers):
            return self.workers.count
        return len(self.workers.worker_ids)


class StandardSubmission(_SubmissionBase):
    kind: Literal["standard"] = "standard"
    execution_number: Literal[1] = 1


class WeedingSubmission(_SubmissionBase):
    """Activities executed in numbered rounds (weeding 1, 2, 3 ...)."""
    kind: Literal["weeding"] = "weeding"
    execution_number: int = Field(ge=1)


class HarvestSubmission(_SubmissionBase):
    kind: Literal["harvest"] = "harvest"
    execution_number: Literal[1] = 1
    estimated_yield: float = Field(gt=0)
    actual_yield: float = Field(gt=0)


SubmissionRequest = Annotated[
    Union[StandardSubmission, WeedingSubmission, HarvestSubmission],
    Field(discriminator="kind"),
]

_request_adapter = TypeAdapter(SubmissionRequest)


def _describe_errors(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "Invalid submission: " + "; ".join(parts)


def parse_submission_request(data) -> SubmissionRequest:
    """
    Accepts a built request or the raw mapping collected by a form.
    Shape errors (missing harvest yields, unknown kind, wrong types) become
    ValidationFailed so they surface like every other validation error.
    """
    if isinstance(data, (StandardSubmission, WeedingSubmission, HarvestSubmission)):
        return data
    try:
        return _request_adapter.validate_python(data)
    except ValidationError as e:
        raise ValidationFailed(_describe_errors(e)) from e


# === Result ===

class AllocationRecord(BaseModel):
    id: int
    registration_id: int
    area_worked: float


class MaterialUsageRecord(BaseModel):
    id: int
    material_id: int
    dosage_per_ha: float
    total_quantity: float
    unit: str


class WorkerRecord(BaseModel):
    id: int
    worker_id: Optional[int]
    count: int


class TransactionRecord(BaseModel):
    id: int
    code: str
    date: dt.date
    vendor_id: int
    activity_type_id: int
    section_id: int
    execution_number: int
    condition: Optional[str] = None
    estimated_yield: Optional[float] = None
    actual_yield: Optional[float] = None
    variety_override: Optional[str] = None
    total_area: float
    total_workers: int
    note: Optional[str] = None
    created_by: int
    created_at: dt.datetime
    allocations: list[AllocationRecord] = Field(default_factory=list)
    materials: list[MaterialUsageRecord] = Field(default_factory=list)
    workers: list[WorkerRecord] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class SubmissionResult(BaseModel):
    success: bool
    transaction: Optional[TransactionRecord] = None
    registrations: list[RegistrationRead] = Field(default_factory=list)
    error_kind: Optional[ErrorKind] = None
    # kind of the failure that started a rollback; differs from error_kind only on RollbackFailed
    cause_kind: Optional[ErrorKind] = None
    message: Optional[str] = None
    rollback: Optional[RollbackOutcome] = None

    @classmethod
    def ok(cls, transaction: TransactionRecord, registrations: list[RegistrationRead]) -> "SubmissionResult":
        return cls(success=True, transaction=transaction, registrations=registrations)

    @classmethod
    def failed(cls, error: SubmissionError) -> "SubmissionResult":
        return cls(
            success=False,
            error_kind=error.kind,
            cause_kind=getattr(error, "original", error).kind,
            message=error.message,
            rollback=error.rollback,
        )
