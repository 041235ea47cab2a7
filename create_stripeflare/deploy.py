"""Dependency install, secret upload and deploy.

``install`` is fatal on failure.  ``publish`` (secret upload + deploy) only
warns and leaves the two commands for the user to run by hand.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from create_stripeflare.commands import CommandOutcome, CommandStep, FailurePolicy, run_step
from create_stripeflare.config import CommandConfig
from create_stripeflare.dev_vars import DEV_VARS_FILENAME
from create_stripeflare.errors import ExternalCommandFailure
from create_stripeflare.utils import print_success, print_warning


class DeploymentReport(BaseModel):
    """Outcome of the publish phase."""

    deployed: bool = False
    outcomes: list[CommandOutcome] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class DeploymentOrchestrator:
    """Runs the external install / upload / deploy commands in a project root."""

    def __init__(self, project_root: str | Path, commands: CommandConfig | None = None) -> None:
        self.project_root = Path(project_root)
        self.commands = commands or CommandConfig()

    @property
    def install_step(self) -> CommandStep:
        return CommandStep(
            name="install",
            argv=self.commands.install,
            policy=FailurePolicy.FATAL,
            timeout=self.commands.install_timeout,
        )

    @property
    def publish_steps(self) -> list[CommandStep]:
        return [
            CommandStep(
                name="upload-secrets",
                argv=self.commands.upload_secrets,
                policy=FailurePolicy.WARN,
                timeout=self.commands.deploy_timeout,
            ),
            CommandStep(
                name="deploy",
                argv=self.commands.deploy,
                policy=FailurePolicy.WARN,
                timeout=self.commands.deploy_timeout,
            ),
        ]

    def manual_commands(self) -> list[str]:
        """Commands the user must run if publishing fails."""
        return [step.display for step in self.publish_steps]

    async def install(self) -> CommandOutcome:
        """Install dependencies.

        Raises:
            ExternalCommandFailure: If the install command fails.
        """
        outcome = await run_step(self.install_step, self.project_root)
        print_success("Dependencies installed")
        return outcome

    async def publish(self) -> DeploymentReport:
        """Upload secrets from ``.dev.vars`` and deploy the worker.

        Stops at the first failed command and downgrades it to a warning.

        Raises:
            ExternalCommandFailure: If ``.dev.vars`` has not been written yet.
        """
        if not (self.project_root / DEV_VARS_FILENAME).is_file():
            raise ExternalCommandFailure(
                "publish", None, f"{DEV_VARS_FILENAME} must be written before secrets are uploaded"
            )

        report = DeploymentReport()
        for step in self.publish_steps:
            outcome = await run_step(step, self.project_root)
            report.outcomes.append(outcome)
            if not outcome.success:
                message = (
                    "Warning: Deployment or secret upload failed. "
                    "You may need to run these commands manually:\n"
                    + "\n".join(f"   {cmd}" for cmd in self.manual_commands())
                )
                print_warning(message)
                report.warnings.append(message)
                return report
            print_success("Secrets uploaded" if step.name == "upload-secrets" else "Deployed to Cloudflare")

        report.deployed = True
        return report
