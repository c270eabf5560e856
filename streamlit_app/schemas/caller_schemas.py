from pydantic import BaseModel, ConfigDict, model_validator
from typing import Optional
from constants.general_constants import Role, SECTION_STAFF_ROLES


class CallerContext(BaseModel):
    """
    Who is acting. Filled by the login collaborator and passed explicitly to
    every registry, resolver and submission call.
    """
    user_id: int
    role: Role
    section_id: Optional[int] = None
    vendor_id: Optional[int] = None
    display_name: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_scope(self):
        if self.role in SECTION_STAFF_ROLES and self.section_id is None:
            raise ValueError(f"{self.role.value} account is not assigned to a section.")
        if self.role == Role.VENDOR and self.vendor_id is None:
            raise ValueError("Vendor account is not linked to a vendor.")
        return self

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_section_staff(self) -> bool:
        return self.role in SECTION_STAFF_ROLES

    @property
    def is_vendor(self) -> bool:
        return self.role == Role.VENDOR
