from typing import Optional
from constants.general_constants import ErrorKind, RollbackOutcome


class SubmissionError(Exception):
    """
    Base for every failure surfaced by the registry, the material resolver
    and the transaction submission engine.

    `kind` is the machine-readable error class, `message` is what the user sees.
    `rollback` is filled in by the engine when the failure happened after
    the first write.
    """
    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, rollback: Optional[RollbackOutcome] = None):
        super().__init__(message)
        self.message = message
        self.rollback = rollback


class ValidationFailed(SubmissionError):
    kind = ErrorKind.VALIDATION


class OverAllocation(SubmissionError):
    kind = ErrorKind.OVER_ALLOCATION

    def __init__(self, registration_id: int, requested: float, remaining: float):
        super().__init__(
            f"Area {requested:g} ha exceeds the remaining {remaining:g} ha "
            f"on registration #{registration_id}. Reload the blocks and try again."
        )
        self.registration_id = registration_id
        self.requested = requested
        self.remaining = remaining


class RegistrationNotFound(SubmissionError):
    kind = ErrorKind.REGISTRATION_NOT_FOUND

    def __init__(self, registration_id: int):
        super().__init__(
            f"Registration #{registration_id} no longer exists. Re-select the blocks before submitting."
        )
        self.registration_id = registration_id


class AccessDenied(SubmissionError):
    kind = ErrorKind.ACCESS_DENIED


class DuplicateSubmission(SubmissionError):
    kind = ErrorKind.DUPLICATE_SUBMISSION


class StoreFailure(SubmissionError):
    kind = ErrorKind.STORE


class RollbackFailed(SubmissionError):
    kind = ErrorKind.ROLLBACK_FAILED

    def __init__(self, original: SubmissionError, leftovers: list[tuple[str, list[int]]]):
        remaining = "; ".join(f"{table}: {ids}" for table, ids in leftovers) or "unknown"
        super().__init__(
            f"{original.message} Cleanup of the partial transaction also failed, "
            f"manual cleanup is required for these rows: {remaining}",
            rollback=RollbackOutcome.ROLLBACK_FAILED,
        )
        self.original = original
        self.leftovers = leftovers
