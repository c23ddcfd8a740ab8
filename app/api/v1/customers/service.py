import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_

from app.api.v1.customers.schemas import (
    ChangePasswordRequest,
    CreateCustomerRequest,
    CustomerLogin,
    CustomerResponse,
    CustomerWithEligibility,
    GuarantorStats,
)
from app.core import email as email_module
from app.core.database import transaction
from app.core.exceptions import NotFoundError, ValidationError
from app.core.guarantor import eligibility_score, is_eligible_guarantor
from app.core.ledger import reconcile_customer
from app.core.notification_service import notify, scope_key_for_customer
from app.core.security import generate_temporary_password, get_password_hash, verify_password
from app.models.customer import Customer
from app.models.enums import LoanStatus, MembershipStatus
from app.models.investment import Investment
from app.models.ledger_entry import LedgerEntry
from app.models.loan import Loan

# Loan statuses that count against a guarantor
_GUARANTOR_LOAN_STATUSES = (
    LoanStatus.approved.value,
    LoanStatus.active.value,
    LoanStatus.completed.value,
)


class CustomerService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def get_customer(self, customer_id: UUID) -> Customer:
        customer = await self.db.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError("Customer not found")
        return customer

    async def create_customer(self, customer_data: CreateCustomerRequest) -> Customer:
        """Create a member account with a generated password and email the credentials."""
        existing_email = await self.db.execute(select(Customer.id).where(Customer.email == customer_data.email))
        if existing_email.scalar_one_or_none():
            raise ValidationError(f"Customer with email {customer_data.email} already exists")
        existing_phone = await self.db.execute(select(Customer.id).where(Customer.phone == customer_data.phone))
        if existing_phone.scalar_one_or_none():
            raise ValidationError(f"Customer with phone {customer_data.phone} already exists")

        generated_password = generate_temporary_password()
        new_customer = Customer(
            first_name=customer_data.first_name,
            last_name=customer_data.last_name,
            email=customer_data.email,
            phone=customer_data.phone,
            profession=customer_data.profession,
            membership_status=customer_data.membership_status.value,
            password_hash=get_password_hash(generated_password),
        )
        async with transaction(self.db):
            self.db.add(new_customer)
        await self.db.refresh(new_customer)
        self.logger.info("Customer %s created", new_customer.id)

        email_sent = await notify(
            self.db,
            "welcome",
            scope_key_for_customer(new_customer.id),
            new_customer.email,
            email_module.send_customer_welcome_email(
                customer_email=new_customer.email,
                customer_name=new_customer.full_name,
                password=generated_password,
            ),
        )
        if not email_sent:
            # Customer exists either way; an admin can reset the password
            self.logger.warning(f"Failed to send password email to {new_customer.email}, but customer was created successfully")
        return new_customer

    async def authenticate_customer(self, login: CustomerLogin) -> Optional[Customer]:
        result = await self.db.execute(select(Customer).where(Customer.email == login.email))
        customer = result.scalars().first()
        if not customer or not verify_password(login.password, customer.password_hash):
            return None
        if customer.membership_status == MembershipStatus.suspended.value:
            return None
        return customer

    async def change_password(self, customer: Customer, data: ChangePasswordRequest) -> None:
        if not verify_password(data.current_password, customer.password_hash):
            raise ValidationError("Current password is incorrect")
        async with transaction(self.db):
            customer.password_hash = get_password_hash(data.new_password)
            self.db.add(customer)

    async def update_membership_status(self, customer_id: UUID, status: MembershipStatus) -> Customer:
        customer = await self.get_customer(customer_id)
        async with transaction(self.db):
            customer.membership_status = status.value
            self.db.add(customer)
        self.logger.info("Customer %s membership set to %s", customer.id, status.value)
        return customer

    async def list_customers(
        self,
        skip: int = 0,
        limit: int = 100,
        search: Optional[str] = None,
        exclude_id: Optional[UUID] = None,
        approved_only: bool = False,
    ) -> Tuple[List[CustomerWithEligibility], int]:
        """Customers with the savings, investment and loan figures behind their guarantor score."""
        filters = []
        if search:
            pattern = f"%{search}%"
            filters.append(or_(
                Customer.first_name.ilike(pattern),
                Customer.last_name.ilike(pattern),
                Customer.email.ilike(pattern),
                Customer.phone.ilike(pattern),
            ))
        if exclude_id:
            filters.append(Customer.id != exclude_id)
        if approved_only:
            filters.append(Customer.membership_status == MembershipStatus.approved.value)

        total = (await self.db.execute(select(func.count(Customer.id)).where(*filters))).scalar() or 0
        result = await self.db.execute(
            select(Customer)
            .where(*filters)
            .order_by(Customer.first_name, Customer.last_name)
            .offset(skip)
            .limit(limit)
        )
        customers = list(result.scalars().all())
        if not customers:
            return [], total

        ids = [c.id for c in customers]
        inv_rows = await self.db.execute(
            select(Investment.customer_id, func.coalesce(func.sum(Investment.amount), 0.0), func.count(Investment.id))
            .where(Investment.customer_id.in_(ids))
            .group_by(Investment.customer_id)
        )
        investments = {cid: (float(total_amount), count) for cid, total_amount, count in inv_rows.all()}
        loan_rows = await self.db.execute(
            select(Loan.customer_id, func.count(Loan.id))
            .where(Loan.customer_id.in_(ids), Loan.status.in_(_GUARANTOR_LOAN_STATUSES))
            .group_by(Loan.customer_id)
        )
        loan_counts = dict(loan_rows.all())

        items = []
        for customer in customers:
            total_investment, investments_count = investments.get(customer.id, (0.0, 0))
            has_loans = loan_counts.get(customer.id, 0) > 0
            savings = customer.savings_balance or 0.0
            items.append(CustomerWithEligibility(
                **CustomerResponse.model_validate(customer).model_dump(),
                stats=GuarantorStats(
                    total_savings=savings,
                    total_investment=total_investment,
                    has_active_loans=has_loans,
                    investments_count=investments_count,
                ),
                is_eligible_guarantor=is_eligible_guarantor(savings),
                eligibility_score=eligibility_score(savings, total_investment, has_loans),
            ))
        return items, total

    async def get_customer_detail(self, customer_id: UUID) -> Tuple[Customer, List[Loan], List[Investment]]:
        customer = await self.get_customer(customer_id)
        loans = await self.db.execute(
            select(Loan).where(Loan.customer_id == customer_id).order_by(Loan.created_at.desc())
        )
        investments = await self.db.execute(
            select(Investment).where(Investment.customer_id == customer_id).order_by(Investment.created_at.desc())
        )
        return customer, list(loans.scalars().all()), list(investments.scalars().all())

    async def get_ledger(self, customer_id: UUID, skip: int = 0, limit: int = 100) -> Tuple[Customer, List[LedgerEntry], int]:
        customer = await self.get_customer(customer_id)
        total = (
            await self.db.execute(select(func.count(LedgerEntry.id)).where(LedgerEntry.customer_id == customer_id))
        ).scalar() or 0
        result = await self.db.execute(
            select(LedgerEntry)
            .where(LedgerEntry.customer_id == customer_id)
            .order_by(LedgerEntry.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return customer, list(result.scalars().all()), total

    async def reconcile(self, customer_id: UUID) -> dict:
        """Rebuild savings_balance and total_loans from the ledger."""
        async with transaction(self.db):
            report = await reconcile_customer(self.db, customer_id)
        self.logger.info("Customer %s reconciled (drift=%s)", customer_id, report["drift_detected"])
        return report

