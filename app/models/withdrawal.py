import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID

from app.core.database import Base
from app.models.enums import WithdrawalStatus


class Withdrawal(Base):
    """A request to pay savings out to a bank account. The amount leaves savings_balance when requested."""
    __tablename__ = "withdrawals"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    account_name = Column(String, nullable=False)
    bank_name = Column(String, nullable=False)
    account_number = Column(String(50), nullable=False)
    routing_number = Column(String(50), nullable=True)
    notes = Column(String(500), nullable=True)
    status = Column(String(20), default=WithdrawalStatus.pending.value, nullable=False, index=True)
    admin_notes = Column(String(500), nullable=True)
    processed_at = Column(DateTime, nullable=True)
    processed_by = Column(UUID(as_uuid=True), ForeignKey("admins.id"), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __mapper_args__ = {"version_id_col": version}
