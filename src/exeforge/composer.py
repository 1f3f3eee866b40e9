"""Artifact composer: one text file that is both a batch script and a C# unit.

``compose`` is pure and deterministic. Nothing here compiles, runs, or probes
for a compiler; the emitted preamble does all of that later, on the machine
that executes the file.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple

from werkzeug.utils import secure_filename

from .flags import FALLBACK_STEM, derive_flags, output_stem, sanitize_name
from .models import BuildConfig, BuildContext, ProjectMetadata
from .polyglot import CLOSE_LINE, COMMENT_CLOSE, emit_preamble

SCRIPT_EXTENSION = ".cmd"
INSTALLER_SUFFIX = "_Installer"


@dataclass(frozen=True)
class ComposeNote:
    kind: str   # "WARN" | "INFO"
    code: str
    message: str


def compose(metadata: ProjectMetadata, config: BuildConfig, embedded_source: str) -> str:
    stem = output_stem(metadata.project_name)
    flags = derive_flags(config, stem)
    preamble = emit_preamble(config, stem, flags)
    return preamble + (embedded_source or "")


def compose_context(ctx: BuildContext) -> str:
    return compose(ctx.metadata, ctx.config, ctx.source_code)


def split_artifact(artifact: str) -> Tuple[str, str]:
    """Split an artifact into (preamble, embedded source).

    The preamble ends at the first line consisting of the close delimiter.
    Raises ValueError when no such line exists.
    """
    marker = "\n" + CLOSE_LINE + "\n"
    idx = artifact.find(marker)
    if idx < 0:
        raise ValueError("Not an ExeForge artifact: comment close line not found")
    cut = idx + len(marker)
    return artifact[:cut], artifact[cut:]


def audit_source(embedded_source: str) -> List[ComposeNote]:
    notes: List[ComposeNote] = []
    if not (embedded_source or "").strip():
        notes.append(ComposeNote(
            kind="INFO", code="EXF-SRC-0002",
            message="Embedded source is empty; the artifact will fail to compile on the target machine.",
        ))
    if COMMENT_CLOSE in (embedded_source or ""):
        # reported only, never escaped
        notes.append(ComposeNote(
            kind="WARN", code="EXF-SRC-0001",
            message=f"Embedded source contains '{COMMENT_CLOSE}'; the artifact is emitted unchanged.",
        ))
    return notes


def audit_metadata(metadata: ProjectMetadata) -> List[ComposeNote]:
    notes: List[ComposeNote] = []
    if not sanitize_name(metadata.project_name):
        notes.append(ComposeNote(
            kind="WARN", code="EXF-NAME-0001",
            message=(
                f"Project name {metadata.project_name!r} has no filename-safe characters; "
                f"output will be {FALLBACK_STEM}.exe"
            ),
        ))
    return notes


def audit(metadata: ProjectMetadata, embedded_source: str) -> List[ComposeNote]:
    return audit_metadata(metadata) + audit_source(embedded_source)


def suggested_filename(metadata: ProjectMetadata, *, extension: Optional[str] = None) -> str:
    ext = extension or SCRIPT_EXTENSION
    base = secure_filename(metadata.project_name or "") or FALLBACK_STEM
    return f"{base}{INSTALLER_SUFFIX}{ext}"
