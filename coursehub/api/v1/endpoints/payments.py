"""
Payment Routes

Checkout, payment confirmation, Stripe webhook and enrollment queries.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.api.deps import get_current_user, get_current_user_optional, require_admin
from coursehub.core.database import get_db
from coursehub.core.payments import StripePaymentProvider, get_payment_provider
from coursehub.models.user import User
from coursehub.schemas.common import Envelope
from coursehub.schemas.payment import (
    CheckoutSessionResponse,
    ConfirmationResponse,
    EnrollmentCheck,
    EnrollmentResponse,
    PaymentListItem,
    VerifyPaymentRequest,
)
from coursehub.services import enrollment_service


router = APIRouter(prefix="/payments", tags=["Payments"])


@router.get(
    "/checkout-session/{course_id}",
    response_model=Envelope[CheckoutSessionResponse],
    summary="Start checkout for a course",
)
async def checkout_session(
    course_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    provider: Annotated[StripePaymentProvider, Depends(get_payment_provider)],
):
    """
    Create a hosted checkout session and return its redirect URL.

    Raises:
        BusinessRuleError: 400 if the caller already bought the course.
        ValidationError: 400 if the course has no positive price.
        NotFoundError: 404 if the course does not exist.
        UpstreamError: 502 if Stripe rejects the request.
    """
    session = await enrollment_service.checkout(course_id, current_user, db, provider)
    return {"data": CheckoutSessionResponse(id=session.id, url=session.url)}


@router.post(
    "/verify-payment",
    response_model=Envelope[ConfirmationResponse],
    summary="Confirm a finished checkout",
)
async def verify_payment(
    data: VerifyPaymentRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    provider: Annotated[StripePaymentProvider, Depends(get_payment_provider)],
):
    """
    Record the payment and enrollment for a paid session.

    Calling this again for the same session records nothing new.

    Raises:
        ValidationError: 400 if the session is not paid.
        PartialFailureError: 500 if the payment was recorded but the
            enrollment was not.
    """
    result = await enrollment_service.verify_payment(data.session_id, current_user, db, provider)
    message = "Payment already recorded" if result.already_recorded else "Payment verified and enrollment created"
    return {"message": message, "data": result}


@router.post(
    "/webhook-checkout",
    response_model=Envelope[None],
    summary="Stripe webhook",
)
async def webhook_checkout(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    provider: Annotated[StripePaymentProvider, Depends(get_payment_provider)],
    stripe_signature: Annotated[Optional[str], Header(alias="Stripe-Signature")] = None,
):
    """
    Receive signed Stripe events.

    checkout.session.completed is confirmed like verify-payment; other
    event types are acknowledged and ignored.

    Raises:
        ValidationError: 400 if the signature does not verify.
    """
    payload = await request.body()
    result = await enrollment_service.handle_webhook(payload, stripe_signature, db, provider)
    return {"message": "received" if result is None else "processed"}


@router.get(
    "/my-payments",
    response_model=Envelope[List[PaymentListItem]],
    summary="List my payments",
)
async def my_payments(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    payments = await enrollment_service.list_user_payments(current_user, db)
    return {"results": len(payments), "data": payments}


@router.get(
    "/my-enrollments",
    response_model=Envelope[List[EnrollmentResponse]],
    summary="List my enrollments",
)
async def my_enrollments(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    enrollments = await enrollment_service.list_user_enrollments(current_user, db)
    return {"results": len(enrollments), "data": enrollments}


@router.get(
    "/check-enrollment/{course_id}",
    response_model=Envelope[EnrollmentCheck],
    summary="Am I enrolled in this course?",
)
async def check_enrollment(
    course_id: int,
    current_user: Annotated[Optional[User], Depends(get_current_user_optional)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Returns enrolled=false for anonymous callers instead of an error."""
    enrolled = await enrollment_service.check_enrollment(current_user, course_id, db)
    return {"data": EnrollmentCheck(course_id=course_id, enrolled=enrolled)}


@router.get(
    "/",
    response_model=Envelope[List[PaymentListItem]],
    summary="List all payments (admin)",
)
async def list_payments(
    _admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    payments = await enrollment_service.list_all_payments(db)
    return {"results": len(payments), "data": payments}
