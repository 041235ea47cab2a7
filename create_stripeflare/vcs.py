"""Git initialisation for a freshly materialized project."""

from __future__ import annotations

from pathlib import Path

from create_stripeflare.commands import CommandStep, FailurePolicy, run_step
from create_stripeflare.utils import print_success


def remote_url(owner: str, name: str) -> str:
    """GitHub URL the project's ``origin`` remote points at."""
    return f"https://github.com/{owner}/{name}"


async def init_repository(
    project_root: str | Path,
    name: str,
    owner: str | None = None,
    timeout: float = 60.0,
) -> str | None:
    """Run ``git init`` and, when *owner* is known, add the ``origin`` remote.

    Returns:
        The remote URL that was configured, or ``None``.

    Raises:
        ExternalCommandFailure: If either git command fails.
    """
    await run_step(
        CommandStep(name="git-init", argv=["git", "init"], policy=FailurePolicy.FATAL, timeout=timeout),
        project_root,
    )

    url: str | None = None
    if owner:
        url = remote_url(owner, name)
        await run_step(
            CommandStep(
                name="git-remote",
                argv=["git", "remote", "add", "origin", url],
                policy=FailurePolicy.FATAL,
                timeout=timeout,
            ),
            project_root,
        )

    print_success(f"Initialized git repository{f' (origin {url})' if url else ''}")
    return url
