"""Stripe billing integration.

Quick usage::

    from create_stripeflare.billing import StripeClient, provision_payment_link

    client = StripeClient(credentials.stripe_secret)
    link = await provision_payment_link(client, params)
"""

from create_stripeflare.billing.client import BillingStepResult, StripeClient
from create_stripeflare.billing.provisioner import (
    BillingResources,
    PaymentLinkResources,
    WebhookResources,
    provision_payment_link,
    provision_webhook,
    to_minor_units,
    webhook_url,
)

__all__ = [
    "BillingResources",
    "BillingStepResult",
    "PaymentLinkResources",
    "StripeClient",
    "WebhookResources",
    "provision_payment_link",
    "provision_webhook",
    "to_minor_units",
    "webhook_url",
]
