"""Template materialization.

Copies a template directory tree to a new project path and then rewrites the
``{{name}}``, ``{{domain}}`` and ``{{title}}`` placeholders in every file of
the copy.  Copying is all-or-nothing; substitution is best-effort per file.
"""

from __future__ import annotations

import os
import re
import shutil
from pathlib import Path

from pydantic import BaseModel, Field

from create_stripeflare.errors import TargetExists, TemplateMissing
from create_stripeflare.utils import print_warning

# Version-control and package-manager metadata is never rewritten.
SKIP_DIRS: frozenset[str] = frozenset({".git", "node_modules"})


class FileSubstitutionWarning(BaseModel):
    """A file that could not be processed during substitution."""

    path: Path
    reason: str


class SubstitutionResult(BaseModel):
    """Outcome of a substitution pass over a project tree."""

    files_processed: int = Field(default=0, description="Regular files visited")
    files_changed: int = Field(default=0, description="Files rewritten in place")
    warnings: list[FileSubstitutionWarning] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.warnings


# ---------------------------------------------------------------------------
# Copy
# ---------------------------------------------------------------------------


def materialize(template_root: str | Path, target_path: str | Path) -> Path:
    """Recursively copy *template_root* to *target_path*.

    Args:
        template_root: The template directory.
        target_path: Where the project is created.  Must not exist.

    Returns:
        The target path.

    Raises:
        TemplateMissing: If the template directory does not exist.
        TargetExists: If anything already exists at *target_path*.
    """
    source = Path(template_root)
    target = Path(target_path)

    if not source.is_dir():
        raise TemplateMissing(str(source))
    if target.exists() or target.is_symlink():
        raise TargetExists(str(target))

    shutil.copytree(source, target)
    return target


# ---------------------------------------------------------------------------
# Placeholder substitution
# ---------------------------------------------------------------------------


def placeholder_pattern(tokens: dict[str, str]) -> re.Pattern[str]:
    """Compile a regex matching any ``{{key}}`` for the keys in *tokens*."""
    alternatives = "|".join(re.escape(key) for key in sorted(tokens, key=len, reverse=True))
    return re.compile(r"\{\{(" + alternatives + r")\}\}")


def render_text(text: str, tokens: dict[str, str], pattern: re.Pattern[str] | None = None) -> str:
    """Replace every ``{{key}}`` in *text* with its value.

    All tokens are replaced in one pass, so replacement values are never
    scanned again.
    """
    if not tokens:
        return text
    pattern = pattern or placeholder_pattern(tokens)
    return pattern.sub(lambda match: tokens[match.group(1)], text)


def substitute(target_path: str | Path, tokens: dict[str, str]) -> SubstitutionResult:
    """Rewrite placeholders in every regular file under *target_path*.

    Directories named in ``SKIP_DIRS`` are pruned.  Files that cannot be
    decoded as UTF-8 text or cannot be read/written are recorded as warnings
    and skipped; the pass always completes.
    """
    root = Path(target_path)
    result = SubstitutionResult()
    pattern = placeholder_pattern(tokens) if tokens else None

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        for filename in sorted(filenames):
            file_path = Path(dirpath) / filename
            if not file_path.is_file():
                continue
            result.files_processed += 1
            try:
                with file_path.open(encoding="utf-8", newline="") as fh:
                    original = fh.read()
                rendered = render_text(original, tokens, pattern)
                if rendered != original:
                    with file_path.open("w", encoding="utf-8", newline="") as fh:
                        fh.write(rendered)
                    result.files_changed += 1
            except UnicodeDecodeError:
                _warn(result, file_path, "not a UTF-8 text file")
            except IsADirectoryError:
                continue
            except OSError as exc:
                _warn(result, file_path, exc.strerror or str(exc))

    return result


def _warn(result: SubstitutionResult, path: Path, reason: str) -> None:
    result.warnings.append(FileSubstitutionWarning(path=path, reason=reason))
    print_warning(f"Warning: Could not process file {path} ({reason})")
