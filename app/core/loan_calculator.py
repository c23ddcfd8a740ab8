"""Loan pricing: processing fee, simple interest, total repayable and monthly installment.

All rates are percentages (10 means 10%). Results are rounded to cents.
"""
from pydantic import BaseModel

from app.core.exceptions import ValidationError
from app.core.utils import round_money


class LoanDetails(BaseModel):
    """Priced loan snapshot, frozen onto the loan at approval time."""
    principal_amount: float
    duration_months: int
    interest_rate: float
    processing_fee_rate: float
    processing_fee: float
    interest_amount: float
    total_loan_amount: float
    monthly_installment: float
    remaining_balance: float
    paid_amount: float = 0.0
    processing_fee_paid: bool = False

    class Config:
        frozen = True


def compute_loan_details(
    principal: float,
    duration_months: int,
    interest_rate: float,
    processing_fee_rate: float,
) -> LoanDetails:
    """
    Price a loan.

    processing_fee = principal * fee_rate
    interest_amount = principal * interest_rate * (duration_months / 12)
    total_loan_amount = principal + interest_amount
    monthly_installment = total_loan_amount / duration_months
    """
    if principal is None or principal <= 0:
        raise ValidationError("Loan principal must be greater than 0")
    if duration_months is None or int(duration_months) != duration_months or duration_months <= 0:
        raise ValidationError("Loan duration must be a positive whole number of months")
    if interest_rate is None or interest_rate < 0:
        raise ValidationError("Interest rate cannot be negative")
    if processing_fee_rate is None or processing_fee_rate < 0:
        raise ValidationError("Processing fee rate cannot be negative")

    duration_months = int(duration_months)
    processing_fee = principal * (processing_fee_rate / 100)
    interest_amount = principal * (interest_rate / 100) * (duration_months / 12)
    total_loan_amount = principal + interest_amount
    monthly_installment = total_loan_amount / duration_months

    return LoanDetails(
        principal_amount=round_money(principal),
        duration_months=duration_months,
        interest_rate=float(interest_rate),
        processing_fee_rate=float(processing_fee_rate),
        processing_fee=round_money(processing_fee),
        interest_amount=round_money(interest_amount),
        total_loan_amount=round_money(total_loan_amount),
        monthly_installment=round_money(monthly_installment),
        remaining_balance=round_money(total_loan_amount),
    )


def remaining_after(total_loan_amount: float, paid_amount: float, liquidation_discount: float = 0.0) -> float:
    """Outstanding balance, never negative."""
    return max(0.0, round_money(total_loan_amount - paid_amount - liquidation_discount))


def apply_repayment(
    total_loan_amount: float,
    paid_amount: float,
    amount: float,
    liquidation_discount: float = 0.0,
) -> tuple[float, float]:
    """Return (new_paid_amount, new_remaining_balance) after an approved repayment."""
    if amount is None or amount <= 0:
        raise ValidationError("Repayment amount must be greater than 0")
    new_paid = round_money((paid_amount or 0.0) + amount)
    return new_paid, remaining_after(total_loan_amount, new_paid, liquidation_discount)


def liquidation_credit(remaining_balance: float) -> float:
    """Half of the outstanding balance is credited when an admin liquidates a loan early."""
    return round_money(max(0.0, remaining_balance or 0.0) / 2)
