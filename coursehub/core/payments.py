"""
Payment Provider

Thin async wrapper around Stripe Checkout. The stripe SDK is blocking, so
every call runs in the threadpool.
"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

import stripe
from fastapi.concurrency import run_in_threadpool

from coursehub.core.config import settings
from coursehub.core.exceptions import UpstreamError, ValidationError


logger = logging.getLogger(__name__)

PAID_STATUSES = frozenset({"paid", "succeeded"})
CHECKOUT_COMPLETED_EVENT = "checkout.session.completed"


@dataclass
class CheckoutSession:
    """Provider-neutral view of a checkout session."""
    id: str
    url: Optional[str]
    payment_status: str
    amount_total: Optional[int]
    currency: Optional[str]
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status in PAID_STATUSES

    @property
    def amount(self) -> Decimal:
        """Amount in major currency units (the provider reports minor units)."""
        return (Decimal(self.amount_total or 0) / 100).quantize(Decimal("0.01"))

    @classmethod
    def from_stripe(cls, obj: Any) -> "CheckoutSession":
        metadata = obj.get("metadata") or {}
        return cls(
            id=obj["id"],
            url=obj.get("url"),
            payment_status=obj.get("payment_status") or "unpaid",
            amount_total=obj.get("amount_total"),
            currency=obj.get("currency"),
            metadata={k: str(v) for k, v in dict(metadata).items()},
        )


@dataclass
class ProviderEvent:
    """A verified asynchronous provider event."""
    type: str
    data: Any


def to_minor_units(amount: Decimal) -> int:
    """Convert a price in major units (e.g. rupees) to minor units (paise)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripePaymentProvider:
    """Checkout session creation, retrieval and webhook verification."""

    def __init__(self, api_key: str, webhook_secret: str, currency: str):
        self._api_key = api_key
        self._webhook_secret = webhook_secret
        self._currency = currency

    async def create_session(
        self,
        amount: Decimal,
        product_name: str,
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
        customer_email: Optional[str] = None,
        description: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> CheckoutSession:
        """
        Create a hosted checkout session for a single item.

        Raises:
            UpstreamError: If Stripe rejects the request.
        """
        product_data: Dict[str, Any] = {
            "name": product_name,
            "description": description or "Course purchase",
        }
        if image_url and image_url.startswith("http"):
            product_data["images"] = [image_url]

        params: Dict[str, Any] = {
            "api_key": self._api_key,
            "mode": "payment",
            "payment_method_types": ["card"],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "client_reference_id": metadata.get("course_id"),
            "metadata": metadata,
            "line_items": [
                {
                    "price_data": {
                        "currency": self._currency,
                        "product_data": product_data,
                        "unit_amount": to_minor_units(amount),
                    },
                    "quantity": 1,
                }
            ],
        }
        if customer_email:
            params["customer_email"] = customer_email

        try:
            session = await run_in_threadpool(stripe.checkout.Session.create, **params)
        except stripe.StripeError as e:
            logger.error("Stripe session creation failed: %s", e)
            raise UpstreamError(f"Stripe error: {e.user_message or e}")

        return CheckoutSession.from_stripe(session)

    async def retrieve_session(self, session_id: str) -> CheckoutSession:
        """
        Fetch the authoritative state of a checkout session.

        Raises:
            UpstreamError: If the session cannot be retrieved.
        """
        try:
            session = await run_in_threadpool(
                stripe.checkout.Session.retrieve, session_id, api_key=self._api_key
            )
        except stripe.StripeError as e:
            logger.warning("Stripe session %s retrieval failed: %s", session_id, e)
            raise UpstreamError(f"Stripe error: {e.user_message or e}")

        return CheckoutSession.from_stripe(session)

    def construct_event(self, payload: bytes, signature: Optional[str]) -> ProviderEvent:
        """
        Verify a webhook payload signature and parse the event.

        Raises:
            ValidationError: If the signature or payload is invalid.
        """
        if not signature:
            raise ValidationError("Missing Stripe-Signature header")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except ValueError:
            raise ValidationError("Invalid webhook payload")
        except stripe.SignatureVerificationError:
            logger.warning("Rejected webhook with invalid signature")
            raise ValidationError("Invalid webhook signature")

        return ProviderEvent(type=event["type"], data=event["data"]["object"])


_provider: Optional[StripePaymentProvider] = None


def get_payment_provider() -> StripePaymentProvider:
    """Get or create the shared payment provider (FastAPI dependency)."""
    global _provider
    if _provider is None:
        _provider = StripePaymentProvider(
            api_key=settings.STRIPE_SECRET_KEY,
            webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
            currency=settings.PAYMENT_CURRENCY,
        )
    return _provider
