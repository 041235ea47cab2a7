"""Exception hierarchy for create-stripeflare.

Every fatal condition raised below the pipeline driver derives from
``StripeflareError`` so the driver can catch them in one place.
"""

from __future__ import annotations


class StripeflareError(Exception):
    """Base class for all fatal pipeline errors."""


class ConfigMissing(StripeflareError):
    """Raised when the credentials file does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            f"{path} file not found. Please create it with STRIPE_SECRET, "
            "STRIPE_PUBLISHABLE_KEY, and optionally GITHUB_OWNER."
        )


class ConfigIncomplete(StripeflareError):
    """Raised when mandatory keys are absent from the credentials file."""

    def __init__(self, path: str, missing: list[str]) -> None:
        self.path = path
        self.missing = missing
        super().__init__(f"Missing {', '.join(missing)} in {path}")


class InvalidParameters(StripeflareError):
    """Raised when collected project parameters fail validation."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__("Invalid project parameters: " + "; ".join(problems))


class TemplateMissing(StripeflareError):
    """Raised when the template directory does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Template folder not found: {path}")


class TargetExists(StripeflareError):
    """Raised when the project directory already exists."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Directory {path} already exists")


class BillingAPIError(StripeflareError):
    """Raised when a Stripe API call fails.

    Resources created earlier in the same chain are left in place.
    """

    def __init__(self, step: str, body: str, status_code: int | None = None) -> None:
        self.step = step
        self.body = body
        self.status_code = status_code
        status = f" (HTTP {status_code})" if status_code is not None else ""
        super().__init__(f"Failed to create {step.replace('_', ' ')}{status}: {body}")


class ExternalCommandFailure(StripeflareError):
    """Raised when a fatal external command exits unsuccessfully."""

    def __init__(self, step: str, returncode: int | None, reason: str = "") -> None:
        self.step = step
        self.returncode = returncode
        self.reason = reason
        message = f"Command '{step}' failed"
        if returncode is not None:
            message += f" (exit {returncode})"
        if reason:
            message += f": {reason}"
        super().__init__(message)
