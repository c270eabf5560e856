from sqlalchemy import Column, Integer, String, Float, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from db.base import Base
from constants.general_constants import DEFAULT_MATERIAL_UNIT
from models.master_data_models import ActivityType, ActivityStage


class Material(Base):
    __tablename__ = "materials"

    id = Column(Integer, primary_key=True)
    code = Column(String(30), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    category = Column(String(20), nullable=False)
    unit = Column(String(20), default=DEFAULT_MATERIAL_UNIT, nullable=False)
    manufacturer = Column(String(100))
    safety_notes = Column(String(255))
    is_active = Column(Boolean, default=True, nullable=False)

    rules = relationship("MaterialRule", back_populates="material")


class MaterialRule(Base):
    """
    Dosage rule for a material within an activity. NULL stage, crop category
    or alternative means the rule applies to every value of that selector.
    """
    __tablename__ = "material_rules"

    id = Column(Integer, primary_key=True)
    activity_type_id = Column(Integer, ForeignKey("activity_types.id"), nullable=False)
    material_id = Column(Integer, ForeignKey("materials.id"), nullable=False)
    stage_id = Column(Integer, ForeignKey("activity_stages.id"), nullable=True)
    crop_category = Column(String(2), nullable=True)
    alternative_option = Column(String(50), nullable=True)
    default_dosage = Column(Float, nullable=False)
    unit = Column(String(20), nullable=False)
    required = Column(Boolean, default=False, nullable=False)
    notes = Column(String(255))

    material = relationship("Material", back_populates="rules")
