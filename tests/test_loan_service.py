import uuid

import pytest
from sqlalchemy import func, select

from app.api.v1.loans.schemas import LoanApplyRequest
from app.api.v1.loans.service import LoanService
from app.api.v1.repayments.schemas import RepaymentCreate
from app.api.v1.repayments.service import RepaymentService
from app.api.v1.settings.schemas import LoanSettingsUpdate
from app.api.v1.settings.service import RateSettingsService
from app.core.exceptions import NotFoundError, StateConflictError, ValidationError
from app.models.enums import LedgerEntryType, LoanStatus, RepaymentStatus
from app.models.ledger_entry import LedgerEntry
from app.models.loan_payment import LoanPayment
from app.models.notification_log import NotificationLog
from app.models.repayment import Repayment
from factories import FixedRates, make_admin, make_customer


def _application(principal: float = 100000, months: int = 12) -> LoanApplyRequest:
    return LoanApplyRequest(
        principal_amount=principal,
        duration_months=months,
        purpose="Dairy equipment",
        borrower_full_name="Ada Member",
        borrower_phone="+254700000001",
        borrower_email="ada@example.com",
    )


async def _approved_loan(db, customer, admin, rates=None):
    service = LoanService(db, rate_reader=rates or FixedRates())
    loan = await service.apply_for_loan(customer, _application())
    return await service.approve_loan(loan.id, admin.id)


async def test_application_is_pending_and_unpriced(db):
    customer = await make_customer(db)

    loan = await LoanService(db).apply_for_loan(customer, _application())

    assert loan.status == LoanStatus.pending.value
    assert loan.total_loan_amount is None
    assert loan.remaining_balance is None
    await db.refresh(customer)
    assert customer.total_loans == 0.0


@pytest.mark.parametrize("principal", [999.99, 100000.01])
async def test_application_outside_limits(db, principal):
    customer = await make_customer(db)

    with pytest.raises(ValidationError):
        await LoanService(db).apply_for_loan(customer, _application(principal=principal))


async def test_approval_freezes_terms_and_credits_total_loans(db):
    customer = await make_customer(db)
    admin = await make_admin(db)

    loan = await _approved_loan(db, customer, admin)

    assert loan.status == LoanStatus.approved.value
    assert loan.processing_fee == 1000.0
    assert loan.interest_amount == 10000.0
    assert loan.total_loan_amount == 110000.0
    assert loan.monthly_installment == 9166.67
    assert loan.remaining_balance == 110000.0
    assert loan.paid_amount == 0.0
    assert loan.processing_fee_paid is False
    assert loan.approved_by == admin.id
    await db.refresh(customer)
    assert customer.total_loans == 100000.0

    # no mail server in tests: the attempt is logged as undelivered and the approval stands
    log = (await db.execute(select(NotificationLog).where(NotificationLog.notification_type == "loan_approved"))).scalars().one()
    assert log.delivered is False
    assert log.recipient == "ada@example.com"


async def test_approval_uses_rates_in_effect(db):
    customer = await make_customer(db)
    admin = await make_admin(db)

    loan = await _approved_loan(db, customer, admin, rates=FixedRates(interest_rate=12, processing_fee_rate=2))

    assert loan.interest_rate == 12.0
    assert loan.interest_amount == 12000.0
    assert loan.processing_fee == 2000.0
    assert loan.total_loan_amount == 112000.0


async def test_saved_settings_are_used_by_default(db):
    customer = await make_customer(db)
    admin = await make_admin(db)
    await RateSettingsService(db).update_rates(LoanSettingsUpdate(interest_rate=5), admin.id)

    service = LoanService(db)
    loan = await service.apply_for_loan(customer, _application(principal=12000))
    loan = await service.approve_loan(loan.id, admin.id)

    assert loan.interest_amount == 600.0
    assert loan.processing_fee == 120.0


async def test_approving_twice_conflicts(db):
    customer = await make_customer(db)
    admin = await make_admin(db)
    loan = await _approved_loan(db, customer, admin)

    with pytest.raises(StateConflictError):
        await LoanService(db, rate_reader=FixedRates()).approve_loan(loan.id, admin.id)

    await db.refresh(customer)
    assert customer.total_loans == 100000.0


async def test_reject_pending_loan(db):
    customer = await make_customer(db)
    admin = await make_admin(db)
    service = LoanService(db)
    loan = await service.apply_for_loan(customer, _application())

    loan = await service.reject_loan(loan.id, admin.id, "Incomplete documents")

    assert loan.status == LoanStatus.rejected.value
    with pytest.raises(StateConflictError):
        await service.approve_loan(loan.id, admin.id)


async def test_liquidation_credits_half_the_balance(db):
    customer = await make_customer(db)
    admin = await make_admin(db)
    loan = await _approved_loan(db, customer, admin)
    loan.paid_amount = 55000.0
    loan.remaining_balance = 55000.0
    await db.commit()

    loan = await LoanService(db).liquidate_loan(loan.id, admin.id)

    assert loan.status == LoanStatus.liquidated.value
    assert loan.remaining_balance == 0.0
    assert loan.paid_amount == 82500.0
    assert loan.liquidation_discount == 27500.0
    assert loan.total_loan_amount - loan.paid_amount - loan.liquidation_discount == loan.remaining_balance
    payment = (await db.execute(select(LoanPayment).where(LoanPayment.loan_id == loan.id))).scalars().one()
    assert payment.amount == 27500.0
    assert payment.payment_type == "liquidation"
    await db.refresh(customer)
    assert customer.total_loans == 72500.0


async def test_liquidating_active_loan_changes_nothing(db):
    customer = await make_customer(db)
    admin = await make_admin(db)
    loan = await _approved_loan(db, customer, admin)
    service = LoanService(db)
    await service.pay_processing_fee(loan.id, customer.id)

    with pytest.raises(StateConflictError):
        await service.liquidate_loan(loan.id, admin.id)

    await db.refresh(loan)
    assert loan.status == LoanStatus.active.value
    assert loan.remaining_balance == 110000.0
    assert loan.paid_amount == 0.0


async def test_paying_processing_fee_activates_loan(db):
    customer = await make_customer(db)
    admin = await make_admin(db)
    loan = await _approved_loan(db, customer, admin)
    service = LoanService(db)

    loan = await service.pay_processing_fee(loan.id, customer.id)

    assert loan.processing_fee_paid is True
    assert loan.status == LoanStatus.active.value
    with pytest.raises(StateConflictError):
        await service.pay_processing_fee(loan.id, customer.id)


async def test_admin_fee_toggle_keeps_status(db):
    customer = await make_customer(db)
    admin = await make_admin(db)
    loan = await _approved_loan(db, customer, admin)

    loan = await LoanService(db).set_processing_fee_paid(loan.id, True)

    assert loan.processing_fee_paid is True
    assert loan.status == LoanStatus.approved.value


async def test_schedule_requires_approval(db):
    customer = await make_customer(db)
    admin = await make_admin(db)
    service = LoanService(db, rate_reader=FixedRates())
    loan = await service.apply_for_loan(customer, _application())

    with pytest.raises(ValidationError):
        await service.get_schedule(loan.id)

    await service.approve_loan(loan.id, admin.id)
    _, entries = await service.get_schedule(loan.id)
    assert len(entries) == 12
    assert entries[-1].balance_after == 0.0


async def test_customer_cannot_read_another_members_loan(db):
    owner = await make_customer(db)
    other = await make_customer(db, first_name="Grace")
    loan = await LoanService(db).apply_for_loan(owner, _application())

    with pytest.raises(NotFoundError):
        await LoanService(db).get_customer_loan(loan.id, other.id)


# ============================================================
# Repayments
# ============================================================

async def _active_loan(db):
    customer = await make_customer(db)
    admin = await make_admin(db)
    loan = await _approved_loan(db, customer, admin)
    loan = await LoanService(db).pay_processing_fee(loan.id, customer.id)
    return customer, admin, loan


async def test_approved_repayment_reduces_balance(db):
    customer, admin, loan = await _active_loan(db)
    service = RepaymentService(db)
    repayment = await service.submit_repayment(customer, RepaymentCreate(loan_id=loan.id, amount=9166.67))

    await db.refresh(loan)
    assert loan.remaining_balance == 110000.0

    repayment, loan = await service.approve_repayment(repayment.id, admin.id)

    assert repayment.status == RepaymentStatus.approved.value
    assert repayment.reviewed_by == admin.id
    assert loan.remaining_balance == 100833.33
    assert loan.paid_amount == 9166.67
    assert loan.status == LoanStatus.active.value
    payments = (await db.execute(select(LoanPayment).where(LoanPayment.loan_id == loan.id))).scalars().all()
    assert [p.repayment_id for p in payments] == [repayment.id]


async def test_full_repayment_completes_loan(db):
    customer, admin, loan = await _active_loan(db)
    service = RepaymentService(db)
    repayment = await service.submit_repayment(customer, RepaymentCreate(loan_id=loan.id, amount=120000))

    _, loan = await service.approve_repayment(repayment.id, admin.id)

    assert loan.remaining_balance == 0.0
    assert loan.status == LoanStatus.completed.value
    with pytest.raises(StateConflictError):
        await service.submit_repayment(customer, RepaymentCreate(loan_id=loan.id, amount=1))


async def test_repayment_reviewed_once(db):
    customer, admin, loan = await _active_loan(db)
    service = RepaymentService(db)
    repayment = await service.submit_repayment(customer, RepaymentCreate(loan_id=loan.id, amount=1000))
    await service.approve_repayment(repayment.id, admin.id)

    with pytest.raises(StateConflictError):
        await service.approve_repayment(repayment.id, admin.id)
    with pytest.raises(StateConflictError):
        await service.reject_repayment(repayment.id, admin.id)

    await db.refresh(loan)
    assert loan.paid_amount == 1000.0


async def test_rejected_repayment_leaves_loan_alone(db):
    customer, admin, loan = await _active_loan(db)
    service = RepaymentService(db)
    repayment = await service.submit_repayment(customer, RepaymentCreate(loan_id=loan.id, amount=1000))

    repayment = await service.reject_repayment(repayment.id, admin.id)

    assert repayment.status == RepaymentStatus.rejected.value
    assert repayment.review_notes == "Proof of payment not valid"
    await db.refresh(loan)
    assert loan.remaining_balance == 110000.0


async def test_repayment_for_missing_loan_writes_nothing(db):
    customer = await make_customer(db)
    admin = await make_admin(db)
    repayment = Repayment(loan_id=uuid.uuid4(), customer_id=customer.id, amount=500)
    db.add(repayment)
    await db.commit()

    with pytest.raises(NotFoundError):
        await RepaymentService(db).approve_repayment(repayment.id, admin.id)

    await db.refresh(repayment)
    assert repayment.status == RepaymentStatus.pending_review.value
    assert (await db.execute(select(func.count(LoanPayment.id)))).scalar() == 0


async def test_repayment_on_pending_loan_is_refused(db):
    customer = await make_customer(db)
    loan = await LoanService(db).apply_for_loan(customer, _application())

    with pytest.raises(StateConflictError):
        await RepaymentService(db).submit_repayment(customer, RepaymentCreate(loan_id=loan.id, amount=100))


async def test_liquidation_ledger_entry(db):
    customer = await make_customer(db)
    admin = await make_admin(db)
    loan = await _approved_loan(db, customer, admin)

    await LoanService(db).liquidate_loan(loan.id, admin.id)

    entry = (
        await db.execute(select(LedgerEntry).where(LedgerEntry.entry_type == LedgerEntryType.loan_liquidation.value))
    ).scalars().one()
    assert entry.amount == -55000.0
    assert entry.reference_id == loan.id
