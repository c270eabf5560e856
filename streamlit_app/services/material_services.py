from typing import Optional, Union
from sqlalchemy import or_
from constants.general_constants import CropCategory
from models.material_models import Material, MaterialRule
from schemas.material_schemas import MaterialLine, MaterialRuleCreate
from schemas.submission_schemas import MaterialEntry
from services.master_data_services import get_activity_type, get_materials
from utils.errors import ValidationFailed


def _nullable_match(column, value):
    """Rule applies when its selector is NULL (any) or equals the chosen value."""
    return or_(column == value, column.is_(None))

def resolve_materials(
    store,
    activity_type_id: Optional[int],
    crop_category: Optional[Union[CropCategory, str]],
    stage_id: Optional[int] = None,
    alternative: Optional[str] = None,
    total_area: float = 0.0,
) -> list[MaterialLine]:
    """
    Material lines that apply to an activity for a crop category, optional
    stage and optional alternative option, with quantities scaled to the area.

    Required rules come back pre-selected. An empty list is a valid answer.
    Read-only.
    """
    if not activity_type_id:
        raise ValidationFailed("Select an activity before resolving materials.")

    r = MaterialRule
    criteria = [r.activity_type_id == activity_type_id]
    if crop_category:
        criteria.append(_nullable_match(r.crop_category, CropCategory(crop_category).value))
    if stage_id:
        criteria.append(_nullable_match(r.stage_id, stage_id))
    if alternative:
        criteria.append(_nullable_match(r.alternative_option, alternative))

    rules = store.query(MaterialRule, *criteria, order_by=[r.id])
    if not rules:
        return []

    materials = get_materials(store, sorted({rule["material_id"] for rule in rules}))

    lines = []
    for rule in rules:
        material = materials[rule["material_id"]]
        lines.append(MaterialLine(
            rule_id=rule["id"],
            material_id=material["id"],
            material_code=material["code"],
            material_name=material["name"],
            category=material["category"],
            dosage_per_ha=rule["default_dosage"],
            quantity=rule["default_dosage"] * total_area,
            unit=rule["unit"],
            required=rule["required"],
            selected=rule["required"],
            stage_id=rule["stage_id"],
            alternative_option=rule["alternative_option"],
            notes=rule["notes"],
        ))
    return lines

def available_alternatives(lines: list[MaterialLine]) -> list[str]:
    return sorted({line.alternative_option for line in lines if line.alternative_option})

def to_material_entries(lines: list[MaterialLine]) -> list[MaterialEntry]:
    """Selected lines in the shape the submission request expects."""
    return [
        MaterialEntry(material_id=line.material_id, dosage_per_ha=line.dosage_per_ha, unit=line.unit)
        for line in lines
        if line.selected
    ]

def add_material_rule(store, data: MaterialRuleCreate) -> dict:
    """
    Stores a dosage rule. The (activity, material, stage, category, alternative)
    tuple must be unique with NULL treated as a value, which a SQL unique
    constraint does not do, so it is checked here.
    """
    get_activity_type(store, data.activity_type_id)
    if not store.get(Material, data.material_id):
        raise ValidationFailed(f"Material #{data.material_id} does not exist.")

    category = data.crop_category.value if data.crop_category else None
    alternative = (data.alternative_option or "").strip() or None

    r = MaterialRule
    duplicate = store.query(
        MaterialRule,
        r.activity_type_id == data.activity_type_id,
        r.material_id == data.material_id,
        r.stage_id == data.stage_id if data.stage_id is not None else r.stage_id.is_(None),
        r.crop_category == category if category is not None else r.crop_category.is_(None),
        r.alternative_option == alternative if alternative is not None else r.alternative_option.is_(None),
    )
    if duplicate:
        raise ValidationFailed(
            "A rule for this material with the same stage, crop category and alternative already exists."
        )

    return store.insert(MaterialRule, {
        "activity_type_id": data.activity_type_id,
        "material_id": data.material_id,
        "stage_id": data.stage_id,
        "crop_category": category,
        "alternative_option": alternative,
        "default_dosage": data.default_dosage,
        "unit": data.unit,
        "required": data.required,
        "notes": data.notes,
    })
