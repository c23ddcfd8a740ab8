import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.enums import AuctionStatus


class Auction(Base):
    __tablename__ = "auctions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=False, index=True)  # owner
    investment_id = Column(UUID(as_uuid=True), ForeignKey("investments.id"), nullable=False, index=True)
    investment_name = Column(String, nullable=True)
    auction_name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    reserve_price = Column(Float, nullable=False)
    current_bid = Column(Float, default=0.0, nullable=False)
    duration_days = Column(Integer, nullable=False)
    status = Column(String(20), default=AuctionStatus.active.value, nullable=False, index=True)
    start_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    end_date = Column(DateTime, nullable=False)
    winning_bid_id = Column(UUID(as_uuid=True), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    bids = relationship("Bid", back_populates="auction", cascade="all, delete-orphan")

    __mapper_args__ = {"version_id_col": version}
