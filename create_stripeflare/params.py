"""Project parameter collection.

Values already known from the command line are kept; the rest are asked for
one at a time in the order name, domain, title and (optionally) price.  Bad
input is a terminal error for the run -- there is no re-prompt loop.
"""

from __future__ import annotations

from collections.abc import Callable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from rich.prompt import Prompt

from create_stripeflare.errors import InvalidParameters

PROMPTS: dict[str, str] = {
    "name": "Worker/repo name",
    "domain": "Domain",
    "title": "Title",
    "price": "Price (in USD, e.g., 19.99)",
}

PRICE_TOO_SMALL = "must be at least 0.01"


class ParameterInput(BaseModel):
    """Raw, possibly incomplete values supplied on the command line."""

    name: str | None = None
    domain: str | None = None
    title: str | None = None
    price: str | None = None


class ProjectParameters(BaseModel):
    """Validated, immutable project parameters."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Directory name and remote identifier")
    domain: str = Field(..., min_length=1, description="Bare hostname, no scheme")
    title: str = Field(..., min_length=1)
    price: Decimal | None = Field(default=None, description="Fixed price in major units")

    @field_validator("name", "domain", "title", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if value in (".", "..") or "/" in value or "\\" in value:
            raise ValueError("must be a plain directory name")
        return value

    @field_validator("domain")
    @classmethod
    def _check_domain(cls, value: str) -> str:
        if "://" in value:
            raise ValueError("must be a bare hostname without a scheme")
        if "/" in value or any(ch.isspace() for ch in value):
            raise ValueError("must be a bare hostname")
        return value

    @field_validator("price")
    @classmethod
    def _check_price(cls, value: Decimal | None) -> Decimal | None:
        if value is not None and (not value.is_finite() or value <= 0):
            raise ValueError("must be a valid positive number")
        if value is not None and _below_one_cent(value):
            raise ValueError(PRICE_TOO_SMALL)
        return value

    @property
    def fixed_price(self) -> bool:
        """``True`` when a fixed amount was supplied."""
        return self.price is not None

    def tokens(self) -> dict[str, str]:
        """Placeholder values for template substitution."""
        return {"name": self.name, "domain": self.domain, "title": self.title}


def parse_price(raw: str) -> Decimal:
    """Parse a user-supplied price in major currency units.

    Raises:
        InvalidParameters: If *raw* is not a positive finite number, or
            rounds to less than one cent.
    """
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        raise InvalidParameters(["price: must be a valid positive number"]) from None
    if not value.is_finite() or value <= 0:
        raise InvalidParameters(["price: must be a valid positive number"])
    if _below_one_cent(value):
        raise InvalidParameters([f"price: {PRICE_TOO_SMALL}"])
    return value


def _below_one_cent(value: Decimal) -> bool:
    return (value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP) < 1


def _ask(prompt: str) -> str:
    return Prompt.ask(prompt, default="", show_default=False)


def collect(
    values: ParameterInput | None = None,
    *,
    require_price: bool = False,
    ask: Callable[[str], str] | None = None,
) -> ProjectParameters:
    """Gather project parameters, prompting for anything not yet known.

    Args:
        values: Values already supplied (e.g. CLI positionals).
        require_price: Prompt for a fixed price when none was supplied.
        ask: Prompt function, defaults to ``rich.prompt.Prompt.ask``.

    Returns:
        Validated ``ProjectParameters``.

    Raises:
        InvalidParameters: If a mandatory field is empty or any value is
            malformed.
    """
    values = values or ParameterInput()
    ask = ask or _ask

    collected: dict[str, str | None] = values.model_dump()
    for field in ("name", "domain", "title"):
        if not (collected[field] or "").strip():
            collected[field] = ask(PROMPTS[field])
    if require_price and not (collected["price"] or "").strip():
        collected["price"] = ask(PROMPTS["price"])

    missing = [f for f in ("name", "domain", "title") if not (collected[f] or "").strip()]
    if missing:
        raise InvalidParameters([f"{field}: is required" for field in missing])

    raw_price = (collected["price"] or "").strip()
    if require_price and not raw_price:
        raise InvalidParameters(["price: is required"])
    price = parse_price(raw_price) if raw_price else None

    try:
        return ProjectParameters(
            name=collected["name"],
            domain=collected["domain"],
            title=collected["title"],
            price=price,
        )
    except ValidationError as exc:
        problems = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
        raise InvalidParameters(problems) from exc
