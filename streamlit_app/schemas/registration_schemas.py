from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from constants.general_constants import RegistrationStatus


class RegistrationCreate(BaseModel):
    block_id: int
    activity_type_id: int
    target_month: str = Field(pattern=r"^\d{4}-\d{2}$")
    execution_number: int = Field(default=1, ge=1)
    target_area: Optional[float] = Field(default=None, gt=0)


class RegistrationRead(BaseModel):
    id: int
    block_id: int
    activity_type_id: int
    execution_number: int
    section_id: int
    crop_category: Optional[str]
    variety: Optional[str]
    target_month: str
    target_area: float
    completed_area: float
    percent_complete: float
    status: RegistrationStatus
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @property
    def remaining_area(self) -> float:
        return max(self.target_area - self.completed_area, 0.0)
