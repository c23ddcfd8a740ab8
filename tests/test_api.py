import uuid

from app.models.enums import MembershipStatus, Role
from factories import (
    DEFAULT_PASSWORD,
    admin_headers,
    customer_headers,
    make_admin,
    make_customer,
    make_investment,
)

API = "/api/v1"


async def test_health(client):
    response = await client.get(f"{API}/health/")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_missing_token_is_unauthorized(client):
    response = await client.get(f"{API}/customers/me")

    assert response.status_code == 401
    assert response.json() == {"message": "Not authenticated"}


async def test_customer_token_cannot_reach_admin_routes(client, db):
    customer = await make_customer(db)

    response = await client.get(f"{API}/loans/", headers=customer_headers(customer))

    assert response.status_code == 403


async def test_customer_login(client, db):
    customer = await make_customer(db, email="login@example.com")

    response = await client.post(f"{API}/customers/login", json={"email": "login@example.com", "password": DEFAULT_PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["customer"]["id"] == str(customer.id)


async def test_suspended_customer_cannot_login(client, db):
    await make_customer(db, email="gone@example.com", membership_status=MembershipStatus.suspended.value)

    response = await client.post(f"{API}/customers/login", json={"email": "gone@example.com", "password": DEFAULT_PASSWORD})

    assert response.status_code == 401


async def test_admin_login_records_last_login(client, db):
    admin = await make_admin(db)

    response = await client.post(f"{API}/admins/login", json={"email": admin.email, "password": DEFAULT_PASSWORD})
    profile = await client.get(f"{API}/admins/profile", headers=admin_headers(admin))

    assert response.status_code == 200
    assert response.json()["access_token"]
    assert profile.json()["last_login_at"] is not None


async def test_only_super_admin_creates_admins(client, db):
    admin = await make_admin(db)
    super_admin = await make_admin(db, role=Role.super_admin)
    payload = {"email": "new.admin@example.com", "password": "Password@1"}

    refused = await client.post(f"{API}/admins/", json=payload, headers=admin_headers(admin))
    created = await client.post(f"{API}/admins/", json=payload, headers=admin_headers(super_admin))

    assert refused.status_code == 403
    assert created.status_code == 201
    assert created.json()["role"] == "admin"


async def test_loan_flow_over_http(client, db):
    customer = await make_customer(db)
    admin = await make_admin(db)
    application = {
        "principal_amount": 100000,
        "duration_months": 12,
        "purpose": "School fees",
        "borrower_full_name": "Ada Member",
        "borrower_phone": "+254700000001",
        "borrower_email": "ada@example.com",
    }

    applied = await client.post(f"{API}/loans/", json=application, headers=customer_headers(customer))
    assert applied.status_code == 201
    loan_id = applied.json()["id"]

    approved = await client.post(f"{API}/loans/{loan_id}/approve", headers=admin_headers(admin))
    assert approved.status_code == 200
    body = approved.json()
    assert body["status"] == "approved"
    assert body["total_loan_amount"] == 110000.0
    assert body["monthly_installment"] == 9166.67

    again = await client.post(f"{API}/loans/{loan_id}/approve", headers=admin_headers(admin))
    assert again.status_code == 400
    assert again.json() == {"message": "Only pending loans can be approved"}

    fee = await client.post(f"{API}/loans/mine/{loan_id}/processing-fee", headers=customer_headers(customer))
    assert fee.status_code == 200
    assert fee.json()["status"] == "active"

    liquidate = await client.post(f"{API}/loans/{loan_id}/liquidate", headers=admin_headers(admin))
    assert liquidate.status_code == 400
    assert "message" in liquidate.json()


async def test_unknown_loan_is_not_found(client, db):
    admin = await make_admin(db)

    response = await client.post(f"{API}/loans/{uuid.uuid4()}/approve", headers=admin_headers(admin))

    assert response.status_code == 404
    assert response.json() == {"message": "Loan not found"}


async def test_bid_endpoint(client, db):
    owner = await make_customer(db, first_name="Owner")
    bidder = await make_customer(db, first_name="Bidder", savings=10000)
    investment = await make_investment(db, owner)
    created = await client.post(
        f"{API}/auctions/",
        json={"investment_id": str(investment.id), "auction_name": "Lot 1", "reserve_price": 5000, "duration_days": 5},
        headers=customer_headers(owner),
    )
    assert created.status_code == 201
    auction_id = created.json()["id"]

    below_reserve = await client.post(f"{API}/auctions/{auction_id}/bids", json={"amount": 4999}, headers=customer_headers(bidder))
    own_auction = await client.post(f"{API}/auctions/{auction_id}/bids", json={"amount": 6000}, headers=customer_headers(owner))
    malformed = await client.post(f"{API}/auctions/{auction_id}/bids", json={"amount": -1}, headers=customer_headers(bidder))
    accepted = await client.post(f"{API}/auctions/{auction_id}/bids", json={"amount": 6000}, headers=customer_headers(bidder))

    assert below_reserve.status_code == 400
    assert own_auction.status_code == 403
    assert malformed.status_code == 422
    assert malformed.json()["message"] == "Validation error"
    assert accepted.status_code == 201
    assert accepted.json()["amount"] == 6000.0

    cancel = await client.post(f"{API}/auctions/{auction_id}/cancel", headers=customer_headers(owner))
    assert cancel.status_code == 400
    assert cancel.json() == {"message": "Cannot cancel auction with active bids"}

    closed = await client.post(f"{API}/auctions/{auction_id}/close", headers=customer_headers(owner))
    assert closed.status_code == 200
    assert closed.json()["winning_bid"]["customer_id"] == str(bidder.id)

    closed_again = await client.post(f"{API}/auctions/{auction_id}/close", headers=customer_headers(owner))
    assert closed_again.status_code == 400


async def test_bid_on_missing_auction(client, db):
    bidder = await make_customer(db, savings=10000)

    response = await client.post(f"{API}/auctions/{uuid.uuid4()}/bids", json={"amount": 6000}, headers=customer_headers(bidder))

    assert response.status_code == 404


async def test_rate_settings_history(client, db):
    admin = await make_admin(db)
    headers = admin_headers(admin)

    current = await client.get(f"{API}/settings/loans", headers=headers)
    assert current.json()["interest_rate"] == 10.0

    invalid = await client.patch(f"{API}/settings/loans", json={"interest_rate": 0}, headers=headers)
    assert invalid.status_code == 422

    updated = await client.patch(f"{API}/settings/loans", json={"interest_rate": 12.5}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["interest_rate"] == 12.5
    assert updated.json()["processing_fee_rate"] == 1.0

    history = await client.get(f"{API}/settings/loans/history", headers=headers)
    item = history.json()["items"][0]
    assert item["previous_interest_rate"] == 10.0
    assert item["interest_rate"] == 12.5


async def test_savings_deposit_and_reconcile(client, db):
    customer = await make_customer(db)
    admin = await make_admin(db)
    headers = admin_headers(admin)

    submitted = await client.post(f"{API}/savings/", json={"amount": 2500}, headers=customer_headers(customer))
    assert submitted.status_code == 201
    saving_id = submitted.json()["id"]

    verified = await client.post(f"{API}/savings/{saving_id}/verify", headers=headers)
    assert verified.status_code == 200
    assert verified.json()["status"] == "verified"
    twice = await client.post(f"{API}/savings/{saving_id}/verify", headers=headers)
    assert twice.status_code == 400

    profile = await client.get(f"{API}/customers/me", headers=customer_headers(customer))
    assert profile.json()["savings_balance"] == 2500.0

    report = await client.post(f"{API}/customers/{customer.id}/reconcile", headers=headers)
    assert report.status_code == 200
    assert report.json()["drift_detected"] is False


async def test_withdrawal_request_and_rejection(client, db):
    customer = await make_customer(db, savings=1000)
    admin = await make_admin(db)
    payout = {"amount": 800, "account_name": "Ada Member", "bank_name": "Coop Bank", "account_number": "0123456789"}

    requested = await client.post(f"{API}/withdrawals/", json=payout, headers=customer_headers(customer))
    assert requested.status_code == 201
    withdrawal_id = requested.json()["id"]
    too_much = await client.post(f"{API}/withdrawals/", json=payout, headers=customer_headers(customer))
    assert too_much.status_code == 400
    assert too_much.json() == {"message": "Insufficient funds"}

    rejected = await client.patch(
        f"{API}/withdrawals/{withdrawal_id}",
        json={"status": "rejected", "admin_notes": "Wrong account"},
        headers=admin_headers(admin),
    )
    assert rejected.status_code == 200
    assert rejected.json()["status"] == "rejected"

    mine = await client.get(f"{API}/withdrawals/mine", headers=customer_headers(customer))
    assert mine.json()["total"] == 1
    profile = await client.get(f"{API}/customers/me", headers=customer_headers(customer))
    assert profile.json()["savings_balance"] == 1000.0


async def test_dashboard_and_export(client, db):
    admin = await make_admin(db)
    headers = admin_headers(admin)

    dashboard = await client.get(f"{API}/dashboard/", params={"period": "7d"}, headers=headers)
    assert dashboard.status_code == 200
    assert dashboard.json()["loans"]["total_loans"] == 0

    export = await client.get(f"{API}/dashboard/loans/export", headers=headers)
    assert export.status_code == 200
    assert export.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert export.content[:2] == b"PK"
