"""Every change to a customer's savings_balance or total_loans, as a signed entry."""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID

from app.core.database import Base


class LedgerEntry(Base):
    __tablename__ = "ledger_entries"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=False, index=True)
    account = Column(String(20), nullable=False)  # savings | loans
    amount = Column(Float, nullable=False)  # signed
    entry_type = Column(String(50), nullable=False)
    reference_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    description = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
