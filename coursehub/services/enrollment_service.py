"""
Enrollment Service

Checkout, payment confirmation and enrollment checks.

A paid checkout session is confirmed either by the buyer (verify) or by the
provider's webhook. Both paths run confirm_session, which is idempotent on
the provider session id: a redelivered session creates nothing new.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.core.config import settings
from coursehub.core.exceptions import (
    AuthorizationError,
    BusinessRuleError,
    NotFoundError,
    PartialFailureError,
    ValidationError,
)
from coursehub.core.payments import (
    CHECKOUT_COMPLETED_EVENT,
    CheckoutSession,
    StripePaymentProvider,
)
from coursehub.models.course import Course
from coursehub.models.enrollment import Enrollment
from coursehub.models.enums import PaymentStatus
from coursehub.models.payment import Payment
from coursehub.models.user import User
from coursehub.schemas.payment import PaymentListItem, PaymentResponse


logger = logging.getLogger(__name__)


@dataclass
class ConfirmationResult:
    """Payment and enrollment rows for a confirmed session."""
    payment: Payment
    enrollment: Optional[Enrollment]
    already_recorded: bool = False


async def find_succeeded_payment(
    user_id: uuid.UUID,
    course_id: int,
    db: AsyncSession,
) -> Optional[Payment]:
    result = await db.execute(
        select(Payment)
        .where(
            Payment.user_id == user_id,
            Payment.course_id == course_id,
            Payment.status == PaymentStatus.SUCCEEDED,
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def checkout(
    course_id: int,
    user: User,
    db: AsyncSession,
    provider: StripePaymentProvider,
) -> CheckoutSession:
    """
    Open a hosted checkout session for a course.

    Args:
        course_id: Course to buy.
        user: Buyer.
        db: Database session.
        provider: Payment provider.

    Returns:
        The created checkout session.

    Raises:
        NotFoundError: If the course does not exist.
        ValidationError: If the course has no positive price.
        BusinessRuleError: If the user already bought the course. Checked
            before the provider is called.
        UpstreamError: If the provider rejects the request.
    """
    result = await db.execute(select(Course).where(Course.id == course_id))
    course = result.scalar_one_or_none()
    if not course:
        raise NotFoundError("Course not found")

    if course.price is None or course.price <= 0:
        raise ValidationError("Invalid course price")

    if await find_succeeded_payment(user.id, course_id, db) is not None:
        raise BusinessRuleError("You have already purchased this course")

    frontend = settings.FRONTEND_URL.rstrip("/")
    session = await provider.create_session(
        amount=course.price,
        product_name=course.title,
        description=course.description,
        image_url=course.image,
        customer_email=user.email,
        success_url=f"{frontend}/courses/{course_id}?success=true&session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{frontend}/courses/{course_id}?canceled=true",
        metadata={"course_id": str(course_id), "user_id": str(user.id)},
    )

    logger.info("Checkout session %s created for user %s, course %s", session.id, user.id, course_id)
    return session


def _parse_metadata(session: CheckoutSession) -> tuple[uuid.UUID, int]:
    try:
        return (
            uuid.UUID(session.metadata["user_id"]),
            int(session.metadata["course_id"]),
        )
    except (KeyError, ValueError):
        raise ValidationError("Checkout session is missing course or user metadata")


async def _find_payment_by_session(session_id: str, db: AsyncSession) -> Optional[Payment]:
    result = await db.execute(
        select(Payment).where(Payment.provider_session_id == session_id)
    )
    return result.scalar_one_or_none()


async def _find_enrollment_for_payment(payment_id: int, db: AsyncSession) -> Optional[Enrollment]:
    result = await db.execute(
        select(Enrollment).where(Enrollment.payment_id == payment_id)
    )
    return result.scalar_one_or_none()


async def _enroll(payment: Payment, db: AsyncSession) -> Enrollment:
    """
    Create the enrollment for a recorded payment.

    Raises:
        PartialFailureError: If the insert fails; the payment stays recorded.
    """
    enrollment = Enrollment(
        user_id=payment.user_id,
        course_id=payment.course_id,
        payment_id=payment.id,
    )
    try:
        db.add(enrollment)
        await db.commit()
        await db.refresh(enrollment)
    except IntegrityError:
        # A concurrent delivery of the same session enrolled first
        await db.rollback()
        existing = await _find_enrollment_for_payment(payment.id, db)
        if existing is None:
            logger.error("Enrollment for payment %s conflicted but no row was found", payment.id)
            raise PartialFailureError(
                "Payment recorded but enrollment could not be created",
                applied=["payment"],
                failed=["enrollment"],
            )
        logger.info("Enrollment for payment %s was created concurrently", payment.id)
        return existing
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(
            "Payment %s (session %s) recorded but enrollment failed: %s",
            payment.id, payment.provider_session_id, e,
        )
        raise PartialFailureError(
            "Payment recorded but enrollment could not be created",
            applied=["payment"],
            failed=["enrollment"],
        )
    return enrollment


async def _redelivered(payment: Payment, db: AsyncSession) -> ConfirmationResult:
    logger.info("Session %s already recorded as payment %s", payment.provider_session_id, payment.id)
    enrollment = await _find_enrollment_for_payment(payment.id, db)
    if enrollment is None:
        logger.warning("Repairing missing enrollment for payment %s", payment.id)
        enrollment = await _enroll(payment, db)
    return ConfirmationResult(payment=payment, enrollment=enrollment, already_recorded=True)


async def confirm_session(
    session: CheckoutSession,
    db: AsyncSession,
) -> ConfirmationResult:
    """
    Record a paid checkout session as a payment plus an enrollment.

    The provider session id is the dedup key. A session that is already
    recorded creates nothing new, except that a payment left without its
    enrollment by an earlier partial failure gets one.

    Args:
        session: Authoritative session state from the provider.
        db: Database session.

    Returns:
        ConfirmationResult describing the rows for this session.

    Raises:
        ValidationError: If the session is unpaid or its metadata is unusable.
        PartialFailureError: If the payment was recorded but the enrollment
            insert failed.
    """
    if not session.is_paid:
        raise ValidationError("Payment not completed")

    user_id, course_id = _parse_metadata(session)

    existing = await _find_payment_by_session(session.id, db)
    if existing is not None:
        return await _redelivered(existing, db)

    payment = Payment(
        user_id=user_id,
        course_id=course_id,
        amount=session.amount,
        status=PaymentStatus.SUCCEEDED,
        provider_session_id=session.id,
    )
    try:
        db.add(payment)
        await db.commit()
        await db.refresh(payment)
    except IntegrityError:
        # Lost a race against another delivery of the same session
        await db.rollback()
        existing = await _find_payment_by_session(session.id, db)
        if existing is None:
            raise
        return await _redelivered(existing, db)

    enrollment = await _enroll(payment, db)
    logger.info("User %s enrolled in course %s via session %s", user_id, course_id, session.id)
    return ConfirmationResult(payment=payment, enrollment=enrollment)


async def verify_payment(
    session_id: str,
    user: User,
    db: AsyncSession,
    provider: StripePaymentProvider,
) -> ConfirmationResult:
    """
    Confirm a checkout session on the buyer's request.

    The session state is re-read from the provider; nothing the client
    sends besides the id is trusted.

    Raises:
        AuthorizationError: If the session belongs to another user.
    """
    session = await provider.retrieve_session(session_id)

    owner = session.metadata.get("user_id")
    if owner is not None and owner != str(user.id) and not user.is_admin:
        raise AuthorizationError("This checkout session belongs to another user")

    return await confirm_session(session, db)


async def handle_webhook(
    payload: bytes,
    signature: Optional[str],
    db: AsyncSession,
    provider: StripePaymentProvider,
) -> Optional[ConfirmationResult]:
    """
    Process a signed provider event.

    Only checkout.session.completed is acted on; other event types are
    acknowledged and ignored.

    Returns:
        ConfirmationResult for a completed checkout, None otherwise.
    """
    event = provider.construct_event(payload, signature)

    if event.type != CHECKOUT_COMPLETED_EVENT:
        logger.debug("Ignoring webhook event %s", event.type)
        return None

    return await confirm_session(CheckoutSession.from_stripe(event.data), db)


async def check_enrollment(
    user: Optional[User],
    course_id: int,
    db: AsyncSession,
) -> bool:
    """Whether the user is enrolled in the course. False without a user."""
    if user is None:
        return False

    result = await db.execute(
        select(Enrollment.id)
        .where(Enrollment.user_id == user.id, Enrollment.course_id == course_id)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def list_user_enrollments(user: User, db: AsyncSession) -> List[Enrollment]:
    result = await db.execute(
        select(Enrollment)
        .where(Enrollment.user_id == user.id)
        .order_by(Enrollment.enrollment_date.desc())
    )
    return list(result.scalars().all())


async def _list_payments(db: AsyncSession, user_id: Optional[uuid.UUID] = None) -> List[PaymentListItem]:
    query = (
        select(Payment, Course.title)
        .outerjoin(Course, Course.id == Payment.course_id)
        .order_by(Payment.created_at.desc())
    )
    if user_id is not None:
        query = query.where(Payment.user_id == user_id)

    result = await db.execute(query)
    return [
        PaymentListItem(
            **PaymentResponse.model_validate(payment).model_dump(),
            course_title=title,
        )
        for payment, title in result.all()
    ]


async def list_user_payments(user: User, db: AsyncSession) -> List[PaymentListItem]:
    """The user's payments, newest first, with course titles."""
    return await _list_payments(db, user_id=user.id)


async def list_all_payments(db: AsyncSession) -> List[PaymentListItem]:
    """Every payment, newest first (admin)."""
    return await _list_payments(db)
