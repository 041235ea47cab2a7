"""Stripe resource provisioning.

Two operations:

* ``provision_payment_link`` -- product -> price -> payment link, each call
  consuming the identifier returned by the previous one.
* ``provision_webhook`` -- one webhook endpoint subscribed to
  ``checkout.session.completed``.

The first failed call aborts with ``BillingAPIError``.  Nothing is retried and
resources already created are left in place.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, Field

from create_stripeflare.billing.client import BillingStepResult, StripeClient
from create_stripeflare.errors import BillingAPIError
from create_stripeflare.params import ProjectParameters
from create_stripeflare.utils import print_success

WEBHOOK_EVENT = "checkout.session.completed"
WEBHOOK_PATH = "/stripe-webhook"


class PaymentLinkResources(BaseModel):
    """Identifiers produced by the product -> price -> payment link chain."""

    product_id: str
    price_id: str
    payment_link: str = Field(..., description="Payment link URL (or id when no URL is returned)")


class WebhookResources(BaseModel):
    """Identifiers produced by webhook registration."""

    webhook_endpoint_id: str
    webhook_signing_secret: str


class BillingResources(BaseModel):
    """Every Stripe identifier created during a run."""

    product_id: str
    price_id: str
    payment_link: str
    webhook_endpoint_id: str
    webhook_signing_secret: str

    @classmethod
    def combine(cls, link: PaymentLinkResources, webhook: WebhookResources) -> "BillingResources":
        return cls(**link.model_dump(), **webhook.model_dump())


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount to minor units, rounding half up."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def webhook_url(domain: str, path: str = WEBHOOK_PATH) -> str:
    """Public URL the worker serves Stripe webhooks on."""
    return f"https://{domain}{path}"


def _require(result: BillingStepResult, field: str = "id") -> str:
    """Return ``result.data[field]`` or raise ``BillingAPIError`` for the step."""
    if not result.success:
        raise BillingAPIError(result.step, result.error or "", result.status_code)
    value = result.data.get(field)
    if not value:
        raise BillingAPIError(
            result.step,
            f"response is missing '{field}': {result.data}",
            result.status_code,
        )
    return str(value)


async def provision_payment_link(
    client: StripeClient,
    params: ProjectParameters,
    currency: str = "usd",
) -> PaymentLinkResources:
    """Create a product, a price and a payment link for the project.

    Without a fixed price the customer enters the amount at checkout; with
    one the price is ``params.price`` converted to minor units.

    Raises:
        BillingAPIError: On the first failed call.  Later calls are skipped.
    """
    product = await client.create_product(params.title)
    product_id = _require(product)
    print_success("Created Stripe product")

    unit_amount = to_minor_units(params.price) if params.price is not None else None
    price = await client.create_price(product_id, currency=currency, unit_amount=unit_amount)
    price_id = _require(price)
    print_success("Created Stripe price")

    link = await client.create_payment_link(price_id, quantity=1)
    if link.success and link.data.get("url"):
        payment_link = str(link.data["url"])
    else:
        payment_link = _require(link)
    print_success("Created Stripe payment link")

    return PaymentLinkResources(
        product_id=product_id,
        price_id=price_id,
        payment_link=payment_link,
    )


async def provision_webhook(
    client: StripeClient,
    params: ProjectParameters,
    path: str = WEBHOOK_PATH,
) -> WebhookResources:
    """Register the project's webhook endpoint and capture its signing secret.

    The endpoint only ever subscribes to ``WEBHOOK_EVENT``.

    Raises:
        BillingAPIError: If the call fails or no secret is returned.
    """
    result = await client.create_webhook_endpoint(webhook_url(params.domain, path), [WEBHOOK_EVENT])
    endpoint_id = _require(result)
    secret = _require(result, "secret")
    print_success("Created Stripe webhook")

    return WebhookResources(webhook_endpoint_id=endpoint_id, webhook_signing_secret=secret)
