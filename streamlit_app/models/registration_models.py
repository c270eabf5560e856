from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, UniqueConstraint
from datetime import datetime, timezone
from db.base import Base
from models.master_data_models import Block, ActivityType, Section


class BlockRegistration(Base):
    __tablename__ = "block_registrations"
    __table_args__ = (UniqueConstraint("block_id", "activity_type_id", "execution_number"),)

    id = Column(Integer, primary_key=True)
    block_id = Column(Integer, ForeignKey("blocks.id"), nullable=False)
    activity_type_id = Column(Integer, ForeignKey("activity_types.id"), nullable=False)
    execution_number = Column(Integer, default=1, nullable=False)
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=False)
    crop_category = Column(String(2))
    variety = Column(String(50))
    target_month = Column(String(7), nullable=False)
    target_area = Column(Float, nullable=False)
    completed_area = Column(Float, default=0.0, nullable=False)
    percent_complete = Column(Float, default=0.0, nullable=False)
    status = Column(String(20), default="NotStarted", nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
