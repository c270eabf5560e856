from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Date
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from db.base import Base
from models.master_data_models import Vendor, ActivityType, Section, Worker
from models.material_models import Material
from models.registration_models import BlockRegistration
from models.users_models import User


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    code = Column(String(40), unique=True, nullable=False)
    date = Column(Date, nullable=False)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False)
    activity_type_id = Column(Integer, ForeignKey("activity_types.id"), nullable=False)
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=False)
    execution_number = Column(Integer, default=1, nullable=False)
    condition = Column(String(20))
    estimated_yield = Column(Float)
    actual_yield = Column(Float)
    variety_override = Column(String(50))
    total_area = Column(Float, nullable=False)
    total_workers = Column(Integer, nullable=False)
    note = Column(String(500))
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    blocks = relationship("TransactionBlock", back_populates="transaction")
    materials = relationship("TransactionMaterial", back_populates="transaction")
    workers = relationship("TransactionWorker", back_populates="transaction")


class TransactionBlock(Base):
    __tablename__ = "transaction_blocks"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False)
    registration_id = Column(Integer, ForeignKey("block_registrations.id"), nullable=False)
    area_worked = Column(Float, nullable=False)

    transaction = relationship("Transaction", back_populates="blocks")


class TransactionMaterial(Base):
    __tablename__ = "transaction_materials"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False)
    material_id = Column(Integer, ForeignKey("materials.id"), nullable=False)
    dosage_per_ha = Column(Float, nullable=False)
    total_quantity = Column(Float, nullable=False)
    unit = Column(String(20), nullable=False)

    transaction = relationship("Transaction", back_populates="materials")


class TransactionWorker(Base):
    """One aggregate row (worker_id NULL) or one row per named worker."""
    __tablename__ = "transaction_workers"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False)
    worker_id = Column(Integer, ForeignKey("workers.id"), nullable=True)
    count = Column(Integer, default=1, nullable=False)

    transaction = relationship("Transaction", back_populates="workers")
