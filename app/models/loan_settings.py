import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID

from app.core.database import Base


class LoanSettings(Base):
    """Current loan rates (percent). A single row keyed by `key`."""
    __tablename__ = "loan_settings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    key = Column(String(50), unique=True, nullable=False, default="loan_settings")
    interest_rate = Column(Float, nullable=False)
    processing_fee_rate = Column(Float, nullable=False)
    updated_by = Column(UUID(as_uuid=True), ForeignKey("admins.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class LoanSettingsHistory(Base):
    __tablename__ = "loan_settings_history"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    previous_interest_rate = Column(Float, nullable=True)
    previous_processing_fee_rate = Column(Float, nullable=True)
    interest_rate = Column(Float, nullable=False)
    processing_fee_rate = Column(Float, nullable=False)
    updated_by = Column(UUID(as_uuid=True), ForeignKey("admins.id"), nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
