"""create-stripeflare configuration.

Two kinds of configuration live here:

* ``Credentials`` -- the Stripe keys and optional GitHub owner read once from
  ``~/.stripeflare.dev.vars`` and threaded explicitly through the pipeline.
* ``Settings`` -- non-secret runtime knobs (paths, API base URL, external
  command lines and timeouts).  Settings are Pydantic v2 models so they are
  validated at construction time and can be overridden from the environment.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from create_stripeflare.errors import ConfigIncomplete, ConfigMissing
from create_stripeflare.scaffolder import TEMPLATE_DIR

CREDENTIALS_FILENAME = ".stripeflare.dev.vars"

REQUIRED_KEYS = ("STRIPE_SECRET", "STRIPE_PUBLISHABLE_KEY")
OPTIONAL_KEYS = ("GITHUB_OWNER",)


def default_credentials_path() -> Path:
    """Return ``~/.stripeflare.dev.vars`` for the current user."""
    return Path.home() / CREDENTIALS_FILENAME


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class Credentials(BaseModel):
    """Stripe keys and optional GitHub owner loaded from the credentials file."""

    model_config = ConfigDict(frozen=True)

    stripe_secret: str = Field(..., min_length=1)
    stripe_publishable_key: str = Field(..., min_length=1)
    github_owner: str | None = Field(
        default=None, description="Enables the git remote when present"
    )


def parse_vars(text: str) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines.

    The first ``=`` is the delimiter.  Lines without ``=`` and lines with an
    empty key or value are ignored.  There is no quoting, escaping or comment
    syntax.
    """
    values: dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.partition("=")
        key = key.strip()
        value = value.strip()
        if sep and key and value:
            values[key] = value
    return values


def load_credentials(path: str | Path | None = None) -> Credentials:
    """Read the credentials file and validate the mandatory Stripe keys.

    Args:
        path: Credentials file.  Defaults to ``~/.stripeflare.dev.vars``.

    Returns:
        A frozen ``Credentials`` instance.

    Raises:
        ConfigMissing: If the file does not exist.
        ConfigIncomplete: If ``STRIPE_SECRET`` or ``STRIPE_PUBLISHABLE_KEY``
            is absent or empty.
    """
    file_path = Path(path) if path is not None else default_credentials_path()
    if not file_path.is_file():
        raise ConfigMissing(str(file_path))

    values = parse_vars(file_path.read_text(encoding="utf-8"))

    missing = [key for key in REQUIRED_KEYS if not values.get(key)]
    if missing:
        raise ConfigIncomplete(str(file_path), missing)

    return Credentials(
        stripe_secret=values["STRIPE_SECRET"],
        stripe_publishable_key=values["STRIPE_PUBLISHABLE_KEY"],
        github_owner=values.get("GITHUB_OWNER"),
    )


# ---------------------------------------------------------------------------
# Runtime settings
# ---------------------------------------------------------------------------


class StripeConfig(BaseModel):
    """Stripe API endpoint and webhook path."""

    api_base: str = Field(default="https://api.stripe.com/v1")
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    currency: str = Field(default="usd", min_length=3, max_length=3)
    webhook_path: str = Field(default="/stripe-webhook")


class CommandConfig(BaseModel):
    """Command lines and timeouts for the external tools."""

    install: list[str] = Field(default_factory=lambda: ["npm", "install"])
    upload_secrets: list[str] = Field(
        default_factory=lambda: ["wrangler", "secret", "bulk", ".dev.vars"]
    )
    deploy: list[str] = Field(default_factory=lambda: ["wrangler", "deploy"])
    install_timeout: float = Field(default=900.0, gt=0)
    deploy_timeout: float = Field(default=600.0, gt=0)
    git_timeout: float = Field(default=60.0, gt=0)


class Settings(BaseModel):
    """Global create-stripeflare settings.

    Created once by the CLI entry point and passed to ``Pipeline``.  Holds no
    secrets; those live in ``Credentials``.
    """

    credentials_path: Path = Field(default_factory=default_credentials_path)
    template_dir: Path = Field(default=TEMPLATE_DIR)
    output_dir: Path = Field(default=Path("."))
    stripe: StripeConfig = Field(default_factory=StripeConfig)
    commands: CommandConfig = Field(default_factory=CommandConfig)

    def project_path(self, name: str) -> Path:
        """Absolute path of the project directory for *name*."""
        return (self.output_dir / name).resolve()

    @classmethod
    def from_env(cls) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            STRIPEFLARE_CREDENTIALS, STRIPEFLARE_TEMPLATE_DIR,
            STRIPEFLARE_OUTPUT_DIR, STRIPEFLARE_STRIPE_API_BASE,
            STRIPEFLARE_STRIPE_TIMEOUT.

        Raises:
            ValidationError: If a variable holds a malformed value.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("STRIPEFLARE_CREDENTIALS"):
            kwargs["credentials_path"] = Path(os.environ["STRIPEFLARE_CREDENTIALS"]).expanduser()
        if os.environ.get("STRIPEFLARE_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["STRIPEFLARE_TEMPLATE_DIR"]).expanduser()
        if os.environ.get("STRIPEFLARE_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["STRIPEFLARE_OUTPUT_DIR"]).expanduser()

        stripe_kwargs: dict[str, Any] = {}
        if os.environ.get("STRIPEFLARE_STRIPE_API_BASE"):
            stripe_kwargs["api_base"] = os.environ["STRIPEFLARE_STRIPE_API_BASE"]
        if os.environ.get("STRIPEFLARE_STRIPE_TIMEOUT"):
            stripe_kwargs["timeout"] = os.environ["STRIPEFLARE_STRIPE_TIMEOUT"]

        return cls(stripe=StripeConfig(**stripe_kwargs), **kwargs)
