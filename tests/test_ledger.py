import uuid

import pytest
from sqlalchemy import func, select, update

from app.core.exceptions import InsufficientFundsError, NotFoundError
from app.core.guarantor import eligibility_score, is_eligible_guarantor
from app.core.ledger import ledger_totals, post_entry, reconcile_customer
from app.models.customer import Customer
from app.models.enums import LedgerAccount, LedgerEntryType
from app.models.ledger_entry import LedgerEntry
from factories import make_customer


async def test_post_entry_updates_balance_and_appends_entry(db):
    customer = await make_customer(db, savings=1000)

    await post_entry(db, customer.id, LedgerAccount.savings, -250.5, LedgerEntryType.bid_reserve, require_funds=True)
    await db.commit()
    await db.refresh(customer)

    assert customer.savings_balance == 749.5
    totals = await ledger_totals(db, customer.id)
    assert totals == {"savings": 749.5, "loans": 0.0}


async def test_debit_beyond_balance_is_refused(db):
    customer = await make_customer(db, savings=100)

    with pytest.raises(InsufficientFundsError):
        await post_entry(db, customer.id, LedgerAccount.savings, -150, LedgerEntryType.bid_reserve, require_funds=True)
    await db.rollback()
    await db.refresh(customer)

    assert customer.savings_balance == 100.0
    count = (await db.execute(select(func.count(LedgerEntry.id)).where(LedgerEntry.customer_id == customer.id))).scalar()
    assert count == 1


async def test_unknown_customer(db):
    with pytest.raises(NotFoundError):
        await post_entry(db, uuid.uuid4(), LedgerAccount.loans, 10, LedgerEntryType.loan_approval)


async def test_reconcile_repairs_drift(db):
    customer = await make_customer(db, savings=500)
    await post_entry(db, customer.id, LedgerAccount.loans, 10000, LedgerEntryType.loan_approval)
    await db.commit()
    await db.execute(update(Customer).where(Customer.id == customer.id).values(savings_balance=999.0))
    await db.commit()

    report = await reconcile_customer(db, customer.id)
    await db.commit()
    await db.refresh(customer)

    assert report["drift_detected"] is True
    assert report["stored_savings_balance"] == 999.0
    assert report["savings_balance"] == 500.0
    assert customer.savings_balance == 500.0
    assert customer.total_loans == 10000.0


async def test_reconcile_reports_what_the_database_holds(db, session_maker):
    customer = await make_customer(db, savings=500)
    # drift written through another session; the copy loaded in `db` still reads 500
    async with session_maker() as other:
        await other.execute(update(Customer).where(Customer.id == customer.id).values(savings_balance=750.0))
        await other.commit()

    report = await reconcile_customer(db, customer.id)
    await db.commit()

    assert report["stored_savings_balance"] == 750.0
    assert report["drift_detected"] is True
    assert customer.savings_balance == 500.0


async def test_reconcile_without_drift(db):
    customer = await make_customer(db, savings=500)

    report = await reconcile_customer(db, customer.id)

    assert report["drift_detected"] is False


@pytest.mark.parametrize(
    "savings, investment, has_loans, expected",
    [
        (0, 0, False, 0),
        (100_000, 0, False, 1),
        (500_000, 100_000, False, 3),
        (1_000_000, 500_000, False, 5),
        (1_000_000, 500_000, True, 4),
        (0, 0, True, 0),
    ],
)
def test_guarantor_score(savings, investment, has_loans, expected):
    assert eligibility_score(savings, investment, has_loans) == expected


def test_guarantor_needs_savings():
    assert is_eligible_guarantor(1.0) is True
    assert is_eligible_guarantor(0) is False
    assert is_eligible_guarantor(None) is False
