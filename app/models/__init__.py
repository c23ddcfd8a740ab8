# Import every model so relationship() targets resolve and Base.metadata is complete.
from app.models.admin import Admin  # noqa: F401
from app.models.customer import Customer  # noqa: F401
from app.models.investment import Investment  # noqa: F401
from app.models.loan import Loan  # noqa: F401
from app.models.loan_payment import LoanPayment  # noqa: F401
from app.models.repayment import Repayment  # noqa: F401
from app.models.auction import Auction  # noqa: F401
from app.models.bid import Bid  # noqa: F401
from app.models.saving import Saving  # noqa: F401
from app.models.withdrawal import Withdrawal  # noqa: F401
from app.models.ledger_entry import LedgerEntry  # noqa: F401
from app.models.loan_settings import LoanSettings, LoanSettingsHistory  # noqa: F401
from app.models.notification_log import NotificationLog  # noqa: F401
