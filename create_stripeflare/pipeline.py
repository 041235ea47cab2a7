"""create-stripeflare pipeline driver.

Runs the project creation pipeline, strictly in order:

 1. Load credentials from ``~/.stripeflare.dev.vars``.
 2. Collect project parameters (CLI values, prompting for the rest).
 3. Copy the template to ``./<name>``.
 4. ``git init`` (+ ``origin`` remote when ``GITHUB_OWNER`` is set).
 5. Replace ``{{name}}``, ``{{domain}}`` and ``{{title}}`` placeholders.
 6. ``npm install``.
 7. Create a Stripe product, price and payment link.
 8. Create a Stripe webhook endpoint.
 9. Write ``.dev.vars``.
10. ``wrangler secret bulk .dev.vars`` and ``wrangler deploy`` (best-effort).

Any failure stops the run; nothing already created is rolled back.

Usage::

    create-stripeflare my-worker my-worker.example.com "My Worker"
    python -m create_stripeflare --price 19.99
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
import traceback
from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError
from rich.panel import Panel

from create_stripeflare.billing import (
    BillingResources,
    PaymentLinkResources,
    StripeClient,
    WebhookResources,
    provision_payment_link,
    provision_webhook,
)
from create_stripeflare.config import Credentials, Settings, load_credentials
from create_stripeflare.deploy import DeploymentOrchestrator
from create_stripeflare.dev_vars import write_dev_vars
from create_stripeflare.errors import StripeflareError
from create_stripeflare.params import ParameterInput, ProjectParameters, collect
from create_stripeflare.scaffolder import materialize, substitute
from create_stripeflare.utils import (
    console,
    format_duration,
    print_error,
    print_step_header,
    print_success,
    print_summary_table,
    print_warning,
)
from create_stripeflare.vcs import init_repository

# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


class Stage(str, Enum):
    """Pipeline states.  Each value is reached once the matching step succeeds."""

    IDLE = "idle"
    CONFIG_LOADED = "config_loaded"
    PARAMS_COLLECTED = "params_collected"
    DIRECTORY_MATERIALIZED = "directory_materialized"
    VERSION_CONTROL_INITIALIZED = "version_control_initialized"
    TOKENS_SUBSTITUTED = "tokens_substituted"
    DEPENDENCIES_INSTALLED = "dependencies_installed"
    PAYMENT_LINK_CREATED = "payment_link_created"
    WEBHOOK_CREATED = "webhook_created"
    SECRETS_WRITTEN = "secrets_written"
    DEPLOYED = "deployed"
    FAILED = "failed"


STAGE_LABELS: dict[Stage, str] = {
    Stage.CONFIG_LOADED: "Loading credentials",
    Stage.PARAMS_COLLECTED: "Project details",
    Stage.DIRECTORY_MATERIALIZED: "Creating project directory",
    Stage.VERSION_CONTROL_INITIALIZED: "Initializing git",
    Stage.TOKENS_SUBSTITUTED: "Replacing template variables",
    Stage.DEPENDENCIES_INSTALLED: "Installing dependencies",
    Stage.PAYMENT_LINK_CREATED: "Creating Stripe product, price and payment link",
    Stage.WEBHOOK_CREATED: "Creating Stripe webhook",
    Stage.SECRETS_WRITTEN: "Writing .dev.vars",
    Stage.DEPLOYED: "Deploying to Cloudflare",
}


class PipelineState(BaseModel):
    """Progress and results of a single run."""

    stage: Stage = Stage.IDLE
    completed: list[Stage] = Field(default_factory=list)
    failed_stage: Stage | None = None
    error: str | None = None
    warnings: list[str] = Field(default_factory=list)
    project_path: Path | None = None
    remote_url: str | None = None
    payment_link: str | None = None
    deployed: bool = False
    success: bool = False
    started_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    duration: str = ""


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class Pipeline:
    """Drives one project creation from credentials to deployment.

    Attributes:
        settings: Paths, API and command configuration.
        state: Progress record, returned from ``run``.
    """

    _STEPS: tuple[tuple[Stage, str], ...] = (
        (Stage.CONFIG_LOADED, "load_config"),
        (Stage.PARAMS_COLLECTED, "collect_params"),
        (Stage.DIRECTORY_MATERIALIZED, "create_project"),
        (Stage.VERSION_CONTROL_INITIALIZED, "init_git"),
        (Stage.TOKENS_SUBSTITUTED, "replace_variables"),
        (Stage.DEPENDENCIES_INSTALLED, "install_dependencies"),
        (Stage.PAYMENT_LINK_CREATED, "create_payment_link"),
        (Stage.WEBHOOK_CREATED, "create_webhook"),
        (Stage.SECRETS_WRITTEN, "write_secrets"),
        (Stage.DEPLOYED, "deploy"),
    )

    def __init__(
        self,
        settings: Settings,
        values: ParameterInput | None = None,
        *,
        require_price: bool = False,
        ask: Callable[[str], str] | None = None,
    ) -> None:
        self.settings = settings
        self.values = values or ParameterInput()
        self.require_price = require_price
        self.ask = ask
        self.state = PipelineState()

        self.credentials: Credentials | None = None
        self.params: ProjectParameters | None = None
        self.project_path: Path | None = None
        self.payment_link: PaymentLinkResources | None = None
        self.webhook: WebhookResources | None = None

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    async def run(self) -> PipelineState:
        """Execute every step in order, stopping at the first failure.

        Returns:
            The final ``PipelineState``; ``success`` is ``True`` also when the
            upload/deploy step only warned.
        """
        start = time.monotonic()
        console.print(
            Panel(
                "[bold bright_cyan]Creating Stripeflare project...[/bold bright_cyan]",
                border_style="bright_cyan",
            )
        )

        for stage, method_name in self._STEPS:
            print_step_header(STAGE_LABELS[stage])
            try:
                await getattr(self, method_name)()
            except StripeflareError as exc:
                self._fail(stage, str(exc))
                print_error(f"Error: {exc}")
                break
            except Exception as exc:
                self._fail(stage, traceback.format_exc())
                print_error(f"Error: {exc}")
                console.print(f"[dim]{traceback.format_exc()}[/dim]")
                break
            self.state.stage = stage
            self.state.completed.append(stage)
        else:
            self.state.success = True

        self.state.duration = format_duration(time.monotonic() - start)
        if self.state.success:
            self._print_final_summary()
        return self.state

    def _fail(self, stage: Stage, error: str) -> None:
        self.state.failed_stage = stage
        self.state.error = error
        self.state.stage = Stage.FAILED

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def load_config(self) -> None:
        self.credentials = load_credentials(self.settings.credentials_path)
        print_success(f"Loaded credentials from {self.settings.credentials_path}")
        if not self.credentials.github_owner:
            print_warning("GITHUB_OWNER not set -- the git remote will not be configured.")

    async def collect_params(self) -> None:
        self.params = collect(self.values, require_price=self.require_price, ask=self.ask)
        pricing = f"${self.params.price}" if self.params.fixed_price else "customer-entered amount"
        print_success(f"{self.params.title} ({self.params.name}) at {self.params.domain}, {pricing}")

    async def create_project(self) -> None:
        target = self.settings.project_path(self._params.name)
        self.project_path = await asyncio.to_thread(materialize, self.settings.template_dir, target)
        self.state.project_path = self.project_path
        print_success(f"Created project directory: {self._params.name}")

    async def init_git(self) -> None:
        self.state.remote_url = await init_repository(
            self._project_path,
            self._params.name,
            self._credentials.github_owner,
            timeout=self.settings.commands.git_timeout,
        )

    async def replace_variables(self) -> None:
        result = await asyncio.to_thread(substitute, self._project_path, self._params.tokens())
        self.state.warnings.extend(f"Could not process file {w.path}: {w.reason}" for w in result.warnings)
        print_success(
            f"Replaced template variables ({result.files_changed} of {result.files_processed} files changed)"
        )

    async def install_dependencies(self) -> None:
        await self._orchestrator().install()

    async def create_payment_link(self) -> None:
        self.payment_link = await provision_payment_link(
            self._stripe(), self._params, currency=self.settings.stripe.currency
        )
        self.state.payment_link = self.payment_link.payment_link

    async def create_webhook(self) -> None:
        self.webhook = await provision_webhook(
            self._stripe(),
            self._params,
            path=self.settings.stripe.webhook_path,
        )

    async def write_secrets(self) -> None:
        assert self.payment_link is not None and self.webhook is not None
        resources = BillingResources.combine(self.payment_link, self.webhook)
        path = await asyncio.to_thread(
            write_dev_vars, self._project_path, self._credentials, resources
        )
        print_success(f"Created {path.name} file")

    async def deploy(self) -> None:
        report = await self._orchestrator().publish()
        self.state.deployed = report.deployed
        self.state.warnings.extend(report.warnings)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def _credentials(self) -> Credentials:
        assert self.credentials is not None, "credentials not loaded"
        return self.credentials

    @property
    def _params(self) -> ProjectParameters:
        assert self.params is not None, "parameters not collected"
        return self.params

    @property
    def _project_path(self) -> Path:
        assert self.project_path is not None, "project not materialized"
        return self.project_path

    def _stripe(self) -> StripeClient:
        return StripeClient(
            self._credentials.stripe_secret,
            base_url=self.settings.stripe.api_base,
            timeout=self.settings.stripe.timeout,
        )

    def _orchestrator(self) -> DeploymentOrchestrator:
        return DeploymentOrchestrator(self._project_path, self.settings.commands)

    def _print_final_summary(self) -> None:
        console.print()
        print_summary_table(
            {
                "Project location": str(self.state.project_path),
                "Domain": self._params.domain,
                "Payment link": self.state.payment_link or "-",
                "Deployed": "yes" if self.state.deployed else "no (see warnings)",
                "Duration": self.state.duration,
            },
            title="Stripeflare project created successfully!",
        )
        if self.state.warnings:
            print_warning(f"Completed with {len(self.state.warnings)} warning(s), see above.")


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="create-stripeflare",
        description="Create, bill-enable and deploy a Stripeflare worker project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  create-stripeflare\n"
            "  create-stripeflare my-worker my-worker.example.com \"My Worker\"\n"
            "  create-stripeflare my-worker my-worker.example.com \"My Worker\" --price 19.99\n"
        ),
    )
    parser.add_argument("name", nargs="?", help="Worker/repo name (prompted if omitted)")
    parser.add_argument("domain", nargs="?", help="Domain, e.g. my-worker.example.com")
    parser.add_argument("title", nargs="?", help="Human-readable title (Stripe product name)")
    parser.add_argument(
        "--price",
        default=None,
        help="Fixed price in USD, e.g. 19.99 (default: customer-entered amount)",
    )
    parser.add_argument(
        "--fixed-price",
        action="store_true",
        help="Prompt for a fixed price when --price is not given",
    )
    parser.add_argument("--template", type=Path, default=None, help="Template directory")
    parser.add_argument("--output", "-o", type=Path, default=None, help="Parent directory (default: .)")
    parser.add_argument(
        "--credentials",
        type=Path,
        default=None,
        help="Credentials file (default: ~/.stripeflare.dev.vars)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``create-stripeflare``."""
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_env()
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        print_error(f"Error: invalid STRIPEFLARE_* environment settings: {problems}")
        sys.exit(1)

    overrides = {
        key: value
        for key, value in (
            ("template_dir", args.template),
            ("output_dir", args.output),
            ("credentials_path", args.credentials),
        )
        if value is not None
    }
    if overrides:
        settings = settings.model_copy(update=overrides)

    values = ParameterInput(name=args.name, domain=args.domain, title=args.title, price=args.price)
    pipeline = Pipeline(settings, values, require_price=args.fixed_price)

    try:
        state = asyncio.run(pipeline.run())
    except KeyboardInterrupt:
        print_error("Aborted.")
        sys.exit(130)

    if not state.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
