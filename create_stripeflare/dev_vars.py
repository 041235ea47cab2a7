"""Writes the project's ``.dev.vars`` secrets file.

The file is uploaded verbatim by ``wrangler secret bulk`` later in the run,
so it holds exactly the keys the worker expects, in a fixed order.
"""

from __future__ import annotations

import secrets
from pathlib import Path

from create_stripeflare.billing.provisioner import BillingResources
from create_stripeflare.config import Credentials

DEV_VARS_FILENAME = ".dev.vars"

DEV_VARS_KEYS = (
    "STRIPE_SECRET",
    "STRIPE_PUBLISHABLE_KEY",
    "STRIPE_PAYMENT_LINK",
    "STRIPE_WEBHOOK_SIGNING_SECRET",
    "DB_SECRET",
)


def generate_secret() -> str:
    """Return 16 random bytes, hex-encoded (32 characters)."""
    return secrets.token_hex(16)


def render_dev_vars(
    credentials: Credentials,
    resources: BillingResources,
    db_secret: str,
) -> str:
    """Build the ``.dev.vars`` content without touching the filesystem."""
    values = (
        credentials.stripe_secret,
        credentials.stripe_publishable_key,
        resources.payment_link,
        resources.webhook_signing_secret,
        db_secret,
    )
    return "\n".join(f"{key}={value}" for key, value in zip(DEV_VARS_KEYS, values))


def write_dev_vars(
    project_root: str | Path,
    credentials: Credentials,
    resources: BillingResources,
) -> Path:
    """Generate a DB secret and write ``{project_root}/.dev.vars``.

    Overwrites any existing file with a single write.

    Returns:
        Path of the written file.
    """
    target = Path(project_root) / DEV_VARS_FILENAME
    target.write_text(
        render_dev_vars(credentials, resources, generate_secret()),
        encoding="utf-8",
    )
    return target
