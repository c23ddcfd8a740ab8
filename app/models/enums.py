from enum import Enum


class Role(str, Enum):
    admin = "admin"
    super_admin = "super_admin"


class MembershipStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    suspended = "suspended"


class LoanStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    active = "active"
    completed = "completed"
    liquidated = "liquidated"


class LoanPaymentType(str, Enum):
    repayment = "repayment"
    liquidation = "liquidation"


class RepaymentStatus(str, Enum):
    pending_review = "pending_review"
    approved = "approved"
    rejected = "rejected"


class AuctionStatus(str, Enum):
    active = "active"
    closed = "closed"  # closed early by its owner
    cancelled = "cancelled"
    completed = "completed"  # settled after its end date passed


class BidStatus(str, Enum):
    active = "active"
    won = "won"
    refunded = "refunded"


class SavingStatus(str, Enum):
    pending = "pending"
    verified = "verified"
    rejected = "rejected"


class LedgerAccount(str, Enum):
    savings = "savings"
    loans = "loans"


class LedgerEntryType(str, Enum):
    deposit = "deposit"
    bid_reserve = "bid_reserve"
    bid_refund = "bid_refund"
    auction_proceeds = "auction_proceeds"
    loan_approval = "loan_approval"
    loan_liquidation = "loan_liquidation"
    investment_purchase = "investment_purchase"
    withdrawal = "withdrawal"
    withdrawal_refund = "withdrawal_refund"


class WithdrawalStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    processing = "processing"
    completed = "completed"  # paid out to the bank account
    rejected = "rejected"  # reserved amount returned to savings
