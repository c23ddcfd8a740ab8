import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.enums import LoanStatus


class Loan(Base):
    __tablename__ = "loans"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=False, index=True)
    principal_amount = Column(Float, nullable=False)
    duration_months = Column(Integer, nullable=False)
    purpose = Column(String(500), nullable=False)
    # Borrower contact details as submitted with the application
    borrower_full_name = Column(String, nullable=False)
    borrower_phone = Column(String, nullable=False)
    borrower_email = Column(String, nullable=False)
    guarantor_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=True)
    guarantor_coverage = Column(Float, default=0.0, nullable=False)
    status = Column(String(20), default=LoanStatus.pending.value, nullable=False, index=True)

    # Loan details: priced at approval with the rates then in effect, then frozen
    interest_rate = Column(Float, nullable=True)
    processing_fee_rate = Column(Float, nullable=True)
    processing_fee = Column(Float, nullable=True)
    interest_amount = Column(Float, nullable=True)
    total_loan_amount = Column(Float, nullable=True)
    monthly_installment = Column(Float, nullable=True)
    remaining_balance = Column(Float, nullable=True)
    paid_amount = Column(Float, default=0.0, nullable=False)
    liquidation_discount = Column(Float, default=0.0, nullable=False)
    processing_fee_paid = Column(Boolean, default=False, nullable=False)

    approved_at = Column(DateTime, nullable=True)
    approved_by = Column(UUID(as_uuid=True), ForeignKey("admins.id"), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Customer", back_populates="loans", foreign_keys=[customer_id])
    payments = relationship(
        "LoanPayment",
        back_populates="loan",
        order_by="LoanPayment.created_at",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def has_details(self) -> bool:
        return self.total_loan_amount is not None
