"""Log of fire-and-forget notifications (approval, welcome, first bid) for audit."""
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.dialects.postgresql import UUID

from app.core.database import Base


class NotificationLog(Base):
    """
    One row per send attempt.
    scope_key: "loan:{loan_id}" for approvals, "customer:{id}" for welcome mail, "auction:{id}" for first-bid notices.
    """
    __tablename__ = "notification_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    notification_type = Column(String(50), nullable=False)  # loan_approved, welcome, first_bid
    scope_key = Column(String(255), nullable=False, index=True)
    recipient = Column(String(255), nullable=False)
    delivered = Column(Boolean, default=False, nullable=False)
    sent_at = Column(DateTime, default=datetime.utcnow, nullable=False)
