"""Allowed loan status transitions."""
from app.core.exceptions import StateConflictError
from app.models.enums import LoanStatus

# action -> statuses the loan may be in when the action runs
_ALLOWED_FROM: dict[str, tuple[LoanStatus, ...]] = {
    "approve": (LoanStatus.pending,),
    "reject": (LoanStatus.pending,),
    "submit_repayment": (LoanStatus.approved, LoanStatus.active),
    "apply_repayment": (LoanStatus.approved, LoanStatus.active),
    "liquidate": (LoanStatus.approved,),
    "pay_processing_fee": (LoanStatus.approved,),
    "resend_approval_email": (LoanStatus.approved,),
}

_MESSAGES: dict[str, str] = {
    "approve": "Only pending loans can be approved",
    "reject": "Only pending loans can be rejected",
    "submit_repayment": "Only active or approved loans can receive payments",
    "apply_repayment": "Only active or approved loans can receive payments",
    "liquidate": "Only approved loans can be liquidated",
    "pay_processing_fee": "Only approved loans can pay processing fee",
    "resend_approval_email": "Can only resend emails for approved loans",
}


def ensure_can(action: str, current_status: str) -> None:
    """Raise StateConflictError unless `action` is allowed from `current_status`."""
    allowed = _ALLOWED_FROM[action]
    if current_status not in {s.value for s in allowed}:
        raise StateConflictError(_MESSAGES[action])


def status_after_repayment(remaining_balance: float) -> str:
    return LoanStatus.completed.value if remaining_balance <= 0 else LoanStatus.active.value
