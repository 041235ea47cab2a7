"""Shared pytest fixtures for the create-stripeflare test suite.

Provides reusable fixtures for:
- A small on-disk template tree with placeholder tokens
- Credentials files and parsed credentials
- Mocked Stripe API responses (patched ``httpx.AsyncClient``)
- Mocked external commands (patched ``run_command``)
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from create_stripeflare.config import Credentials
from create_stripeflare.params import ProjectParameters

BINARY_BYTES = b"\x89PNG\r\n\x1a\n\x00\xff\xfe\xfd{{name}}"


# ---------------------------------------------------------------------------
# Template & project data
# ---------------------------------------------------------------------------


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """A template tree with tokens in nested files and one binary file."""
    root = tmp_path / "template"
    (root / "src" / "lib").mkdir(parents=True)
    (root / "assets").mkdir()
    (root / "empty").mkdir()

    (root / "README.md").write_text("Hello {{name}} at {{domain}}", encoding="utf-8")
    (root / "src" / "main.ts").write_text(
        'export const title = "{{title}}";\nexport const host = "{{domain}}";\n',
        encoding="utf-8",
    )
    (root / "src" / "lib" / "plain.txt").write_text("no placeholders here\n", encoding="utf-8")
    (root / "package.json").write_text('{"name": "{{name}}"}\n', encoding="utf-8")
    (root / ".gitignore").write_text("node_modules\n.dev.vars\n", encoding="utf-8")
    (root / "assets" / "logo.png").write_bytes(BINARY_BYTES)
    return root


@pytest.fixture
def project_params() -> ProjectParameters:
    return ProjectParameters(name="myapp", domain="myapp.example.com", title="My App")


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        stripe_secret="sk_x",
        stripe_publishable_key="pk_x",
        github_owner="acme",
    )


@pytest.fixture
def credentials_file(tmp_path: Path) -> Path:
    """A credentials file with both Stripe keys and a GitHub owner."""
    path = tmp_path / ".stripeflare.dev.vars"
    path.write_text(
        "STRIPE_SECRET=sk_x\nSTRIPE_PUBLISHABLE_KEY=pk_x\nGITHUB_OWNER=acme\n",
        encoding="utf-8",
    )
    return path


# ---------------------------------------------------------------------------
# Mock Stripe API
# ---------------------------------------------------------------------------


def _make_response(
    status_code: int = 200,
    json_data: dict[str, Any] | None = None,
    text: str = "",
) -> MagicMock:
    """Build a mock ``httpx.Response``."""
    response = MagicMock()
    response.status_code = status_code
    response.is_success = 200 <= status_code < 300
    response.json.return_value = json_data or {}
    response.text = text or str(json_data or "")
    return response


STRIPE_OK: dict[str, MagicMock] = {
    "/products": _make_response(json_data={"id": "prod_1", "name": "My App"}),
    "/prices": _make_response(json_data={"id": "price_1", "currency": "usd"}),
    "/payment_links": _make_response(
        json_data={"id": "plink_1", "url": "https://buy.stripe.com/test_1"}
    ),
    "/webhook_endpoints": _make_response(json_data={"id": "we_1", "secret": "whsec_1"}),
}


@pytest.fixture
def make_response():
    """Factory for mock ``httpx.Response`` objects."""
    return _make_response


@pytest.fixture
def mock_stripe():
    """Factory patching ``httpx.AsyncClient`` with canned Stripe responses.

    Usage:
        def test_something(mock_stripe):
            patcher, client = mock_stripe({"/products": make_response(400, text="bad")})
            with patcher:
                ...
            assert client.post.await_count == 1

    Paths not overridden return the ``STRIPE_OK`` responses.
    """

    def factory(overrides: dict[str, MagicMock] | None = None):
        responses = {**STRIPE_OK, **(overrides or {})}

        async def mock_post(url: str, **kwargs: Any) -> MagicMock:
            return responses[url]

        mock_client = AsyncMock()
        mock_client.post = AsyncMock(side_effect=mock_post)
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=False)
        return patch("httpx.AsyncClient", return_value=mock_client), mock_client

    return factory


# ---------------------------------------------------------------------------
# Mock external commands
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_commands():
    """Factory patching ``run_command`` used by every external command step.

    Usage:
        def test_deploy(mock_commands):
            patcher, runner = mock_commands({("wrangler", "deploy"): 1})
            with patcher:
                ...

    Keys are argv tuples, values the exit code to return (default 0) or an
    exception instance to raise.
    """

    def factory(results: dict[tuple[str, ...], int | Exception] | None = None):
        results = results or {}

        async def fake_run(cmd: list[str], **kwargs: Any) -> tuple[int, str, str]:
            result = results.get(tuple(cmd), 0)
            if isinstance(result, Exception):
                raise result
            return (result, "", "")

        runner = AsyncMock(side_effect=fake_run)
        return patch("create_stripeflare.commands.run_command", runner), runner

    return factory


@pytest.fixture
def answers() -> Callable[[list[str]], MagicMock]:
    """Factory for a scripted prompt function returning *values* in order."""

    def factory(values: list[str]) -> MagicMock:
        return MagicMock(side_effect=list(values))

    return factory
