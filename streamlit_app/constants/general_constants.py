from enum import Enum


class Role(str, Enum):
    ADMIN = "Admin"
    SECTION_HEAD = "SectionHead"
    SUPERVISOR = "Supervisor"
    VENDOR = "Vendor"


SECTION_STAFF_ROLES = {Role.SECTION_HEAD, Role.SUPERVISOR}


class RegistrationStatus(str, Enum):
    NOT_STARTED = "NotStarted"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


# Registrations that can no longer receive area
CLOSED_STATUSES = {RegistrationStatus.COMPLETED, RegistrationStatus.CANCELLED}


class CropCategory(str, Enum):
    PLANT_CANE = "PC"
    RATOON_CANE = "RC"


class Condition(str, Enum):
    LIGHT = "Light"
    MODERATE = "Moderate"
    HEAVY = "Heavy"


class WorkerMode(str, Enum):
    MANUAL = "manual"
    NAMED = "named"


class MaterialCategory(str, Enum):
    HERBICIDE = "herbicide"
    PESTICIDE = "pesticide"
    FERTILIZER = "fertilizer"
    TOOL = "tool"


DEFAULT_MATERIAL_UNIT = "liter"


class ErrorKind(str, Enum):
    VALIDATION = "ValidationError"
    OVER_ALLOCATION = "OverAllocation"
    REGISTRATION_NOT_FOUND = "RegistrationNotFound"
    ACCESS_DENIED = "AccessDenied"
    DUPLICATE_SUBMISSION = "DuplicateSubmission"
    STORE = "StoreError"
    ROLLBACK_FAILED = "RollbackFailed"


class RollbackOutcome(str, Enum):
    ROLLED_BACK = "RolledBack"
    ROLLBACK_FAILED = "RollbackFailed"


STATUS_COLOR_MAP = {
    RegistrationStatus.NOT_STARTED.value: "gray",
    RegistrationStatus.IN_PROGRESS.value: "orange",
    RegistrationStatus.COMPLETED.value: "green",
    RegistrationStatus.CANCELLED.value: "red",
}
