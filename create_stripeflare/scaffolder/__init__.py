"""create-stripeflare scaffolder -- instantiates the project template.

The bundled template lives in ``template/`` next to this module and contains
literal ``{{name}}``, ``{{domain}}`` and ``{{title}}`` placeholders.

Quick usage::

    from create_stripeflare.scaffolder import materialize, substitute

    project = materialize(TEMPLATE_DIR, "./my-worker")
    result = substitute(project, {"name": "my-worker", "domain": "x.dev", "title": "X"})
"""

from pathlib import Path

from create_stripeflare.scaffolder.materializer import (
    SKIP_DIRS,
    FileSubstitutionWarning,
    SubstitutionResult,
    materialize,
    placeholder_pattern,
    render_text,
    substitute,
)

TEMPLATE_DIR = Path(__file__).parent / "template"

__all__ = [
    "SKIP_DIRS",
    "TEMPLATE_DIR",
    "FileSubstitutionWarning",
    "SubstitutionResult",
    "materialize",
    "placeholder_pattern",
    "render_text",
    "substitute",
]
