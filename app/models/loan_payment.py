"""Append-only payment history of a loan (approved repayments and liquidation credits)."""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.enums import LoanPaymentType


class LoanPayment(Base):
    __tablename__ = "loan_payments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    loan_id = Column(UUID(as_uuid=True), ForeignKey("loans.id"), nullable=False, index=True)
    repayment_id = Column(UUID(as_uuid=True), ForeignKey("repayments.id"), nullable=True)
    amount = Column(Float, nullable=False)
    payment_type = Column(String(20), default=LoanPaymentType.repayment.value, nullable=False)
    description = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    loan = relationship("Loan", back_populates="payments")
