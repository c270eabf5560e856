from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from db.base import Base


class Section(Base):
    __tablename__ = "sections"

    id = Column(Integer, primary_key=True)
    code = Column(String(20), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    blocks = relationship("Block", back_populates="section")


class Vendor(Base):
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True)
    code = Column(String(20), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    contact_person = Column(String(100))
    phone = Column(String(30))
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    workers = relationship("Worker", back_populates="vendor")
    assignments = relationship("VendorAssignment", back_populates="vendor")


class VendorAssignment(Base):
    """Which sections a vendor may work in, per activity."""
    __tablename__ = "vendor_assignments"
    __table_args__ = (UniqueConstraint("vendor_id", "section_id", "activity_type_id"),)

    id = Column(Integer, primary_key=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False)
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=False)
    activity_type_id = Column(Integer, ForeignKey("activity_types.id"), nullable=False)

    vendor = relationship("Vendor", back_populates="assignments")


class Worker(Base):
    __tablename__ = "workers"

    id = Column(Integer, primary_key=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False)
    worker_code = Column(String(30), nullable=False)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    vendor = relationship("Vendor", back_populates="workers")


class Block(Base):
    __tablename__ = "blocks"

    id = Column(Integer, primary_key=True)
    code = Column(String(30), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    zone = Column(String(50), nullable=False)
    area_ha = Column(Float, nullable=False)
    crop_category = Column(String(2))
    variety = Column(String(50))
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    section = relationship("Section", back_populates="blocks")


class ActivityType(Base):
    """
    Activity master record. The boolean columns are the capability table the
    submission engine consults instead of comparing activity codes.
    """
    __tablename__ = "activity_types"

    id = Column(Integer, primary_key=True)
    code = Column(String(30), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    allows_multiple_execution = Column(Boolean, default=False, nullable=False)
    max_execution = Column(Integer, default=1, nullable=False)
    requires_condition = Column(Boolean, default=False, nullable=False)
    requires_yield = Column(Boolean, default=False, nullable=False)
    requires_materials = Column(Boolean, default=False, nullable=False)
    records_variety = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)


class ActivityStage(Base):
    __tablename__ = "activity_stages"

    id = Column(Integer, primary_key=True)
    code = Column(String(30), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    sequence_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
