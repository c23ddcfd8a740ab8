"""
Customer balance ledger.

savings_balance and total_loans on Customer change only through post_entry(), which applies an
atomic increment and appends a LedgerEntry in the caller's transaction. reconcile_customer()
recomputes both aggregates from the entries.
"""
import logging
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InsufficientFundsError, NotFoundError
from app.core.utils import round_money
from app.models.customer import Customer
from app.models.enums import LedgerAccount, LedgerEntryType
from app.models.ledger_entry import LedgerEntry

logger = logging.getLogger(__name__)

_ACCOUNT_COLUMNS = {
    LedgerAccount.savings.value: Customer.savings_balance,
    LedgerAccount.loans.value: Customer.total_loans,
}


async def post_entry(
    db: AsyncSession,
    customer_id: UUID,
    account: LedgerAccount,
    amount: float,
    entry_type: LedgerEntryType,
    description: str | None = None,
    reference_id: UUID | None = None,
    require_funds: bool = False,
) -> LedgerEntry:
    """
    Apply a signed amount to one customer aggregate and record it. Does not commit.
    With require_funds, a debit only applies while the balance covers it.
    """
    column = _ACCOUNT_COLUMNS[account.value]
    amount = round_money(amount)
    stmt = (
        update(Customer)
        .where(Customer.id == customer_id)
        .values({column: column + amount})
        .execution_options(synchronize_session="evaluate")
    )
    if require_funds and amount < 0:
        stmt = stmt.where(column >= -amount)
    result = await db.execute(stmt)
    if result.rowcount != 1:
        if await db.get(Customer, customer_id) is None:
            raise NotFoundError("Customer not found")
        raise InsufficientFundsError("Insufficient funds")

    entry = LedgerEntry(
        customer_id=customer_id,
        account=account.value,
        amount=amount,
        entry_type=entry_type.value,
        reference_id=reference_id,
        description=description,
    )
    db.add(entry)
    logger.debug(
        "Ledger %s %s %.2f for customer %s (ref=%s)",
        account.value, entry_type.value, amount, customer_id, reference_id,
    )
    return entry


async def ledger_totals(db: AsyncSession, customer_id: UUID) -> dict[str, float]:
    """Sum of entries per account for a customer."""
    result = await db.execute(
        select(LedgerEntry.account, func.coalesce(func.sum(LedgerEntry.amount), 0.0))
        .where(LedgerEntry.customer_id == customer_id)
        .group_by(LedgerEntry.account)
    )
    totals = {account.value: 0.0 for account in LedgerAccount}
    for account, total in result.all():
        totals[account] = round_money(total)
    return totals


async def reconcile_customer(db: AsyncSession, customer_id: UUID) -> dict:
    """
    Recompute savings_balance and total_loans from the ledger and overwrite the stored values.
    Returns the stored and recomputed figures so drift is visible to the caller. Does not commit.
    """
    result = await db.execute(
        select(Customer)
        .where(Customer.id == customer_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    customer = result.scalars().first()
    if customer is None:
        raise NotFoundError("Customer not found")
    totals = await ledger_totals(db, customer_id)
    report = {
        "customer_id": customer_id,
        "stored_savings_balance": round_money(customer.savings_balance or 0.0),
        "stored_total_loans": round_money(customer.total_loans or 0.0),
        "savings_balance": totals[LedgerAccount.savings.value],
        "total_loans": totals[LedgerAccount.loans.value],
    }
    report["drift_detected"] = (
        report["stored_savings_balance"] != report["savings_balance"]
        or report["stored_total_loans"] != report["total_loans"]
    )
    if report["drift_detected"]:
        logger.warning(
            "Ledger drift for customer %s: savings %.2f -> %.2f, loans %.2f -> %.2f",
            customer_id,
            report["stored_savings_balance"], report["savings_balance"],
            report["stored_total_loans"], report["total_loans"],
        )
    customer.savings_balance = report["savings_balance"]
    customer.total_loans = report["total_loans"]
    db.add(customer)
    return report
