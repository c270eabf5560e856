from typing import Optional
from sqlalchemy import true
from models.master_data_models import ActivityType, Vendor, Block, Worker, ActivityStage, Section
from models.material_models import Material
from schemas.caller_schemas import CallerContext
from services.access_services import vendor_activity_ids
from utils.errors import ValidationFailed


def get_activity_type(store, activity_type_id: int) -> dict:
    activity = store.get(ActivityType, activity_type_id)
    if not activity or not activity["is_active"]:
        raise ValidationFailed(f"Activity #{activity_type_id} does not exist or is inactive.")
    return activity

def get_vendor(store, vendor_id: int) -> dict:
    vendor = store.get(Vendor, vendor_id)
    if not vendor or not vendor["is_active"]:
        raise ValidationFailed(f"Vendor #{vendor_id} does not exist or is inactive.")
    return vendor

def get_block(store, block_id: int) -> dict:
    block = store.get(Block, block_id)
    if not block or not block["is_active"]:
        raise ValidationFailed(f"Block #{block_id} does not exist or is inactive.")
    return block

def get_blocks(store, block_ids: list[int]) -> dict[int, dict]:
    if not block_ids:
        return {}
    rows = store.query(Block, Block.id.in_(block_ids))
    return {row["id"]: row for row in rows}

def get_workers(store, worker_ids: list[int]) -> dict[int, dict]:
    if not worker_ids:
        return {}
    rows = store.query(Worker, Worker.id.in_(worker_ids))
    return {row["id"]: row for row in rows}

def get_materials(store, material_ids: list[int]) -> dict[int, dict]:
    if not material_ids:
        return {}
    rows = store.query(Material, Material.id.in_(material_ids))
    return {row["id"]: row for row in rows}

def list_vendor_workers(store, vendor_id: int) -> list[dict]:
    return store.query(
        Worker,
        Worker.vendor_id == vendor_id,
        Worker.is_active == true(),
        order_by=[Worker.name],
    )

def list_activity_types(store, caller: CallerContext) -> list[dict]:
    """Active activities; vendors only see the ones they are assigned to."""
    criteria = [ActivityType.is_active == true()]
    if caller.is_vendor:
        assigned = vendor_activity_ids(store, caller.vendor_id)
        if not assigned:
            return []
        criteria.append(ActivityType.id.in_(list(assigned)))
    return store.query(ActivityType, *criteria, order_by=[ActivityType.name])

def list_stages(store) -> list[dict]:
    return store.query(
        ActivityStage,
        ActivityStage.is_active == true(),
        order_by=[ActivityStage.sequence_order],
    )

def list_vendors(store, caller: CallerContext) -> list[dict]:
    criteria = [Vendor.is_active == true()]
    if caller.is_vendor:
        criteria.append(Vendor.id == caller.vendor_id)
    return store.query(Vendor, *criteria, order_by=[Vendor.name])

def get_section_name(store, section_id: Optional[int]) -> Optional[str]:
    if section_id is None:
        return None
    section = store.get(Section, section_id)
    return section["name"] if section else None

def list_blocks(store, caller: CallerContext) -> list[dict]:
    """Active blocks the caller can register: all for admins, own section for staff."""
    if caller.is_vendor:
        return []
    criteria = [Block.is_active == true()]
    if caller.is_section_staff:
        criteria.append(Block.section_id == caller.section_id)
    return store.query(Block, *criteria, order_by=[Block.code])
