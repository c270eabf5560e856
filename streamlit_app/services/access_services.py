from typing import Optional
from models.master_data_models import VendorAssignment
from models.registration_models import BlockRegistration
from schemas.caller_schemas import CallerContext
from utils.errors import AccessDenied


def vendor_assignments(store, vendor_id: int, activity_type_id: Optional[int] = None) -> list[dict]:
    criteria = [VendorAssignment.vendor_id == vendor_id]
    if activity_type_id is not None:
        criteria.append(VendorAssignment.activity_type_id == activity_type_id)
    return store.query(VendorAssignment, *criteria)

def vendor_section_ids(store, vendor_id: int, activity_type_id: Optional[int] = None) -> set[int]:
    return {row["section_id"] for row in vendor_assignments(store, vendor_id, activity_type_id)}

def vendor_activity_ids(store, vendor_id: int) -> set[int]:
    return {row["activity_type_id"] for row in vendor_assignments(store, vendor_id)}

def registration_scope(store, caller: CallerContext, activity_type_id: Optional[int] = None) -> Optional[list]:
    """
    Filter criteria restricting block registrations to what the caller may see.

    Returns None when nothing is visible (vendor without assignments).
    Admins get an empty list: no restriction.
    """
    if caller.is_admin:
        return []
    if caller.is_section_staff:
        return [BlockRegistration.section_id == caller.section_id]

    # Vendor: sections assigned to them (for this activity when one is given)
    section_ids = vendor_section_ids(store, caller.vendor_id, activity_type_id)
    if not section_ids:
        return None
    criteria = [BlockRegistration.section_id.in_(sorted(section_ids))]
    if activity_type_id is None:
        criteria.append(BlockRegistration.activity_type_id.in_(sorted(vendor_activity_ids(store, caller.vendor_id))))
    return criteria

def ensure_can_manage_section(caller: CallerContext, section_id: int) -> None:
    """Registering blocks: admins anywhere, section staff in their own section."""
    if caller.is_vendor:
        raise AccessDenied("Vendors cannot register blocks.")
    if caller.is_section_staff and caller.section_id != section_id:
        raise AccessDenied("You can only manage blocks in your own section.")

def ensure_can_submit_for_vendor(caller: CallerContext, vendor_id: int) -> None:
    if caller.is_vendor and caller.vendor_id != vendor_id:
        raise AccessDenied("Vendors can only submit transactions for their own company.")

def ensure_can_work_registration(store, caller: CallerContext, registration, allowed_sections: Optional[set[int]] = None) -> None:
    """
    `allowed_sections` is the vendor's assigned section set for the activity;
    pass it in when checking several registrations to avoid re-querying.
    """
    if caller.is_admin:
        return
    if caller.is_section_staff:
        if registration.section_id != caller.section_id:
            raise AccessDenied(f"Registration #{registration.id} belongs to another section.")
        return

    if allowed_sections is None:
        allowed_sections = vendor_section_ids(store, caller.vendor_id, registration.activity_type_id)
    if registration.section_id not in allowed_sections:
        raise AccessDenied(
            f"Your company is not assigned to this activity in the section of registration #{registration.id}."
        )
