"""
Payment Schemas

Pydantic models for checkout, payment and enrollment responses.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from coursehub.models.enums import PaymentStatus


class CheckoutSessionResponse(BaseModel):
    """Hosted checkout session to redirect the buyer to."""

    id: str
    url: Optional[str] = None


class VerifyPaymentRequest(BaseModel):
    """Schema for client-initiated payment verification."""

    session_id: str = Field(..., min_length=1)


class PaymentResponse(BaseModel):
    """Schema for payment response."""

    id: int
    user_id: uuid.UUID
    course_id: int
    amount: Decimal
    status: PaymentStatus
    provider_session_id: str
    created_at: datetime

    model_config = {"from_attributes": True}


class PaymentListItem(PaymentResponse):
    """Payment with the purchased course title."""

    course_title: Optional[str] = None


class EnrollmentResponse(BaseModel):
    """Schema for enrollment response."""

    id: int
    user_id: uuid.UUID
    course_id: int
    payment_id: int
    enrollment_date: datetime

    model_config = {"from_attributes": True}


class ConfirmationResponse(BaseModel):
    """Result of confirming a paid checkout session."""

    payment: PaymentResponse
    enrollment: Optional[EnrollmentResponse] = None
    already_recorded: bool = False

    model_config = {"from_attributes": True}


class EnrollmentCheck(BaseModel):
    """Whether the caller is enrolled in a course."""

    course_id: int
    enrolled: bool
