import pytest
from sqlalchemy import func, select

from app.api.v1.withdrawals.schemas import WithdrawalCreate, WithdrawalStatusUpdate
from app.api.v1.withdrawals.service import WithdrawalService
from app.core.exceptions import InsufficientFundsError, StateConflictError, ValidationError
from app.core.ledger import reconcile_customer
from app.models.enums import LedgerEntryType, WithdrawalStatus
from app.models.ledger_entry import LedgerEntry
from app.models.withdrawal import Withdrawal
from factories import make_admin, make_customer


def _request(amount: float) -> WithdrawalCreate:
    return WithdrawalCreate(
        amount=amount,
        account_name="Ada Member",
        bank_name="Coop Bank",
        account_number="0123456789",
    )


def _status(status: WithdrawalStatus, notes: str = None) -> WithdrawalStatusUpdate:
    return WithdrawalStatusUpdate(status=status, admin_notes=notes)


async def _entries(db, withdrawal_id):
    result = await db.execute(
        select(LedgerEntry.entry_type, LedgerEntry.amount)
        .where(LedgerEntry.reference_id == withdrawal_id)
        .order_by(LedgerEntry.created_at)
    )
    return [tuple(row) for row in result.all()]


async def test_request_reserves_amount_from_savings(db):
    customer = await make_customer(db, savings=5000)

    withdrawal = await WithdrawalService(db).request_withdrawal(customer, _request(1200))
    await db.refresh(customer)

    assert withdrawal.status == WithdrawalStatus.pending.value
    assert customer.savings_balance == 3800.0
    assert await _entries(db, withdrawal.id) == [(LedgerEntryType.withdrawal.value, -1200.0)]


async def test_request_beyond_savings_is_refused(db):
    customer = await make_customer(db, savings=500)

    with pytest.raises(InsufficientFundsError):
        await WithdrawalService(db).request_withdrawal(customer, _request(500.01))
    await db.refresh(customer)

    assert customer.savings_balance == 500.0
    assert (await db.execute(select(func.count(Withdrawal.id)))).scalar() == 0


async def test_pending_requests_count_against_savings(db):
    customer = await make_customer(db, savings=1000)
    service = WithdrawalService(db)
    await service.request_withdrawal(customer, _request(700))

    with pytest.raises(InsufficientFundsError):
        await service.request_withdrawal(customer, _request(400))
    await service.request_withdrawal(customer, _request(300))
    await db.refresh(customer)

    assert customer.savings_balance == 0.0


async def test_rejection_returns_reserved_amount(db):
    customer = await make_customer(db, savings=2000)
    admin = await make_admin(db)
    service = WithdrawalService(db)
    withdrawal = await service.request_withdrawal(customer, _request(1500))

    withdrawal = await service.update_status(withdrawal.id, _status(WithdrawalStatus.rejected, "Account name mismatch"), admin.id)
    await db.refresh(customer)

    assert withdrawal.status == WithdrawalStatus.rejected.value
    assert withdrawal.processed_by == admin.id
    assert withdrawal.admin_notes == "Account name mismatch"
    assert customer.savings_balance == 2000.0
    assert await _entries(db, withdrawal.id) == [
        (LedgerEntryType.withdrawal.value, -1500.0),
        (LedgerEntryType.withdrawal_refund.value, 1500.0),
    ]
    with pytest.raises(StateConflictError):
        await service.update_status(withdrawal.id, _status(WithdrawalStatus.rejected), admin.id)
    report = await reconcile_customer(db, customer.id)
    assert report["drift_detected"] is False


async def test_completed_withdrawal_keeps_savings_debited(db):
    customer = await make_customer(db, savings=2000)
    admin = await make_admin(db)
    service = WithdrawalService(db)
    withdrawal = await service.request_withdrawal(customer, _request(1500))

    await service.update_status(withdrawal.id, _status(WithdrawalStatus.approved), admin.id)
    await service.update_status(withdrawal.id, _status(WithdrawalStatus.processing), admin.id)
    withdrawal = await service.update_status(withdrawal.id, _status(WithdrawalStatus.completed), admin.id)
    await db.refresh(customer)

    assert withdrawal.status == WithdrawalStatus.completed.value
    assert customer.savings_balance == 500.0
    with pytest.raises(StateConflictError):
        await service.update_status(withdrawal.id, _status(WithdrawalStatus.rejected), admin.id)


async def test_pending_withdrawal_cannot_jump_to_completed(db):
    customer = await make_customer(db, savings=2000)
    admin = await make_admin(db)
    service = WithdrawalService(db)
    withdrawal = await service.request_withdrawal(customer, _request(100))

    with pytest.raises(StateConflictError):
        await service.update_status(withdrawal.id, _status(WithdrawalStatus.completed), admin.id)
    with pytest.raises(ValidationError):
        await service.update_status(withdrawal.id, _status(WithdrawalStatus.pending), admin.id)
