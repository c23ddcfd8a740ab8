"""Monthly repayment schedule (amortization table) for an approved loan."""
from calendar import monthrange
from datetime import date, datetime

from pydantic import BaseModel

from app.core.exceptions import ValidationError
from app.core.utils import round_money


class ScheduleEntry(BaseModel):
    installment_number: int
    due_date: datetime
    amount: float
    balance_after: float


def get_monthly_due_dates(start: datetime, months: int) -> list[datetime]:
    """
    Return `months` due datetimes: one month apart starting one month after `start`,
    same day of month (or the last day when the month is shorter).
    """
    due_dates: list[datetime] = []
    day = start.day
    y, m = start.year, start.month
    for _ in range(months):
        m += 1
        if m > 12:
            m, y = 1, y + 1
        last = monthrange(y, m)[1]
        d = date(y, m, min(day, last))
        due_dates.append(datetime.combine(d, start.time()))
    return due_dates


def build_repayment_schedule(
    total_loan_amount: float,
    monthly_installment: float,
    duration_months: int,
    start: datetime,
) -> list[ScheduleEntry]:
    """
    Build the installment table. Installments are the frozen monthly amount; the last one
    absorbs rounding so the table sums to total_loan_amount.
    """
    if duration_months <= 0:
        raise ValidationError("Loan duration must be greater than 0 months")
    entries: list[ScheduleEntry] = []
    balance = round_money(total_loan_amount)
    for number, due in enumerate(get_monthly_due_dates(start, duration_months), start=1):
        amount = balance if number == duration_months else min(round_money(monthly_installment), balance)
        balance = round_money(balance - amount)
        entries.append(
            ScheduleEntry(
                installment_number=number,
                due_date=due,
                amount=amount,
                balance_after=balance,
            )
        )
    return entries
