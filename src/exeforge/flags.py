from __future__ import annotations
from dataclasses import dataclass
import re
from typing import Dict, List, Tuple

from .models import BuildConfig, OutputType

# csc.exe switches derived from a BuildConfig.

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_-]")

FALLBACK_STEM = "App"

TARGET_FLAGS: Dict[OutputType, str] = {
    OutputType.CONSOLE: "/target:exe",
    OutputType.WINDOWED: "/target:winexe",
}

# Windows Forms programs need the toolkit assemblies referenced explicitly.
REFERENCE_FLAGS: Dict[OutputType, Tuple[str, ...]] = {
    OutputType.CONSOLE: (),
    OutputType.WINDOWED: (
        "/reference:System.Windows.Forms.dll",
        "/reference:System.Drawing.dll",
    ),
}

OPTIMIZE_ON = "/optimize+"
OPTIMIZE_OFF = "/optimize-"
UNSAFE_FLAG = "/unsafe"
NOLOGO_FLAG = "/nologo"


def sanitize_name(project_name: str) -> str:
    """Keep letters, digits, underscore and hyphen; drop everything else.

    May return an empty string, see ``output_stem``.
    """
    return _UNSAFE_NAME_CHARS.sub("", project_name or "")


def output_stem(project_name: str) -> str:
    return sanitize_name(project_name) or FALLBACK_STEM


@dataclass(frozen=True)
class CompilerFlags:
    out: str
    target: str
    platform: str
    optimize: str
    unsafe: str
    references: Tuple[str, ...]

    def as_args(self) -> List[str]:
        """Switches in invocation order; empty optional switches are skipped."""
        args = [NOLOGO_FLAG, self.out, self.target, self.platform, self.optimize]
        if self.unsafe:
            args.append(self.unsafe)
        args.extend(self.references)
        return args

    def command_line(self) -> str:
        return " ".join(self.as_args())


def derive_flags(config: BuildConfig, stem: str) -> CompilerFlags:
    return CompilerFlags(
        out=f'/out:"{stem}.exe"',
        target=TARGET_FLAGS[config.output_type],
        platform=f"/platform:{config.target_architecture.value}",
        optimize=OPTIMIZE_ON if config.enable_optimization else OPTIMIZE_OFF,
        unsafe=UNSAFE_FLAG if config.allow_unsafe else "",
        references=REFERENCE_FLAGS[config.output_type],
    )
