"""Async client for the Stripe REST API.

Wraps the four endpoints the provisioning pipeline needs
(``/v1/products``, ``/v1/prices``, ``/v1/payment_links`` and
``/v1/webhook_endpoints``).  Requests authenticate with the secret key as a
bearer token and send form-encoded bodies; responses are JSON.

Every call returns a ``BillingStepResult`` instead of raising, so callers
decide how a failed step is handled.

Typical usage::

    client = StripeClient(secret_key)
    result = await client.create_product("My App")
    if result.success:
        print(result.data["id"])
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, Field


class BillingStepResult(BaseModel):
    """Tagged outcome of a single Stripe API call."""

    step: str = Field(..., description="Which call produced this result")
    success: bool = Field(default=True)
    data: dict[str, Any] = Field(default_factory=dict, description="Parsed JSON body on success")
    status_code: int | None = Field(default=None)
    error: str | None = Field(default=None, description="Raw error body or transport message")


class StripeClient:
    """Async client for the Stripe API.

    A fresh ``httpx.AsyncClient`` is opened per call; the pipeline makes only
    a handful of strictly sequential requests.
    """

    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.stripe.com/v1",
        timeout: float = 30.0,
    ) -> None:
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` with auth headers and timeout."""
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.secret_key}"},
            timeout=httpx.Timeout(self.timeout, connect=10.0),
        )

    async def _post(self, step: str, path: str, form: dict[str, str]) -> BillingStepResult:
        """POST a form-encoded body and wrap the outcome."""
        try:
            async with self._client() as client:
                response = await client.post(path, data=form)
        except httpx.ConnectError:
            return BillingStepResult(
                step=step,
                success=False,
                error=f"Cannot connect to Stripe at {self.base_url}.",
            )
        except httpx.TimeoutException:
            return BillingStepResult(
                step=step,
                success=False,
                error=f"Request to Stripe timed out after {self.timeout}s.",
            )
        except httpx.HTTPError as exc:
            return BillingStepResult(
                step=step,
                success=False,
                error=f"Unexpected error talking to Stripe: {exc}",
            )

        if not response.is_success:
            return BillingStepResult(
                step=step,
                success=False,
                status_code=response.status_code,
                error=response.text,
            )

        try:
            data = response.json()
        except ValueError:
            return BillingStepResult(
                step=step,
                success=False,
                status_code=response.status_code,
                error=f"Stripe returned a non-JSON body: {response.text[:500]}",
            )
        return BillingStepResult(step=step, data=data, status_code=response.status_code)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def create_product(self, name: str) -> BillingStepResult:
        """Create a product named *name*."""
        return await self._post("product", "/products", {"name": name})

    async def create_price(
        self,
        product_id: str,
        currency: str = "usd",
        unit_amount: int | None = None,
    ) -> BillingStepResult:
        """Create a price for *product_id*.

        Args:
            product_id: The product the price belongs to.
            currency: ISO currency code (lowercase).
            unit_amount: Fixed amount in minor units.  When ``None`` the price
                lets the customer enter the amount at checkout.
        """
        form = {"currency": currency, "product": product_id}
        if unit_amount is None:
            form["custom_unit_amount[enabled]"] = "true"
        else:
            form["unit_amount"] = str(unit_amount)
        return await self._post("price", "/prices", form)

    async def create_payment_link(self, price_id: str, quantity: int = 1) -> BillingStepResult:
        """Create a payment link selling *quantity* of *price_id*."""
        form = {
            "line_items[0][price]": price_id,
            "line_items[0][quantity]": str(quantity),
        }
        return await self._post("payment_link", "/payment_links", form)

    async def create_webhook_endpoint(self, url: str, events: list[str]) -> BillingStepResult:
        """Register a webhook endpoint at *url* subscribed to *events*.

        The response carries the signing secret; Stripe never returns it again.
        """
        form: dict[str, str] = {"url": url}
        for index, event in enumerate(events):
            form[f"enabled_events[{index}]"] = event
        return await self._post("webhook_endpoint", "/webhook_endpoints", form)
