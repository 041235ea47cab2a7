"""External command steps with an explicit failure policy.

Each step names what it runs and what happens when it fails:

* ``FailurePolicy.FATAL`` -- the failure raises ``ExternalCommandFailure``.
* ``FailurePolicy.WARN``  -- the failure is reported in the returned
  ``CommandOutcome`` and the caller decides how to warn.

Commands inherit the caller's standard streams; only the exit status matters.
"""

from __future__ import annotations

import shlex
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from create_stripeflare.errors import ExternalCommandFailure
from create_stripeflare.utils import console, run_command


class FailurePolicy(str, Enum):
    FATAL = "fatal"
    WARN = "warn"


class CommandStep(BaseModel):
    """One external command invocation."""

    name: str
    argv: list[str] = Field(..., min_length=1)
    policy: FailurePolicy = FailurePolicy.FATAL
    timeout: float = Field(default=120.0, gt=0)

    @property
    def display(self) -> str:
        return shlex.join(self.argv)


class CommandOutcome(BaseModel):
    """Result of running a ``CommandStep``."""

    step: str
    returncode: int | None = None
    success: bool = True
    reason: str = ""


async def run_step(step: CommandStep, cwd: str | Path) -> CommandOutcome:
    """Run *step* in *cwd* and apply its failure policy.

    A missing executable counts as a failed run.

    Raises:
        ExternalCommandFailure: If the step fails and its policy is ``FATAL``.
    """
    console.print(f"  [dim]$ {step.display}[/dim]")
    try:
        returncode, _, stderr = await run_command(
            step.argv, cwd=cwd, timeout=step.timeout, capture=False
        )
    except OSError as exc:
        outcome = CommandOutcome(
            step=step.name,
            success=False,
            reason=f"cannot run {step.argv[0]}: {exc.strerror or exc}",
        )
    else:
        outcome = CommandOutcome(
            step=step.name,
            returncode=returncode,
            success=returncode == 0,
            reason=stderr,
        )

    if not outcome.success and step.policy is FailurePolicy.FATAL:
        raise ExternalCommandFailure(step.display, outcome.returncode, outcome.reason)
    return outcome
