"""
Payment Model

A checkout payment recorded after provider confirmation.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from coursehub.core.database import Base
from coursehub.models.enums import PaymentStatus, enum_values


class Payment(Base):
    """
    Payment model.

    `provider_session_id` is the dedup key for confirmation events.

    Attributes:
        id: Integer primary key.
        user_id: Buyer.
        course_id: Purchased course.
        amount: Amount paid in major currency units.
        status: pending, succeeded or failed.
        provider_session_id: Stripe checkout session id (unique).
    """

    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    course_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("courses.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
    )
    status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, name="payment_status", values_callable=enum_values, create_constraint=True),
        default=PaymentStatus.PENDING,
        nullable=False,
    )
    provider_session_id: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, session={self.provider_session_id}, status={self.status})>"
