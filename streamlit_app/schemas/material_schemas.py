from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from constants.general_constants import CropCategory, MaterialCategory


class MaterialRuleCreate(BaseModel):
    activity_type_id: int
    material_id: int
    stage_id: Optional[int] = None
    crop_category: Optional[CropCategory] = None
    alternative_option: Optional[str] = None
    default_dosage: float = Field(gt=0)
    unit: str
    required: bool = False
    notes: Optional[str] = None


class MaterialLine(BaseModel):
    """A material offered for a transaction, with its dosage scaled to the area."""
    rule_id: int
    material_id: int
    material_code: str
    material_name: str
    category: MaterialCategory
    dosage_per_ha: float
    quantity: float
    unit: str
    required: bool
    selected: bool
    stage_id: Optional[int] = None
    alternative_option: Optional[str] = None
    notes: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    def with_dosage(self, dosage_per_ha: float, total_area: float) -> "MaterialLine":
        return self.model_copy(update={
            "dosage_per_ha": dosage_per_ha,
            "quantity": dosage_per_ha * total_area,
        })
