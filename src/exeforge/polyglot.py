from __future__ import annotations
from typing import List, Sequence

from .flags import CompilerFlags
from .models import BuildConfig

# Batch preamble hidden inside a C# block comment.
#
# cmd.exe runs the lines one by one and leaves through `goto :eof` before it
# reaches the closing delimiter; csc.exe sees a single comment followed by the
# program body. Every line between the delimiters must stay valid for both.

COMMENT_OPEN = "/*"
COMMENT_CLOSE = "*/"

# First line of the file. cmd.exe tries to run "/*" as a command; the error
# goes to NUL and the banner's `cls` wipes the echoed line.
OPEN_LINE = COMMENT_OPEN + " 2>NUL"
CLOSE_LINE = COMMENT_CLOSE

SELF_REF = '"%~f0"'
COMPILER_EXE = "csc.exe"
COMPILER_VAR = "CSC"

# Probed in order; within a root the last matching version directory wins,
# which is the newest one since `for /d` enumerates alphabetically.
COMPILER_ROOTS: Sequence[str] = (
    r"%windir%\Microsoft.NET\Framework64",
    r"%windir%\Microsoft.NET\Framework",
)

BANNER_TITLE = "ExeForge Architect - Local Build Environment"
RULE = "=" * 56


def _escape_echo(text: str) -> str:
    """Escape cmd metacharacters so `echo` prints them inside ( ) blocks."""
    out: List[str] = []
    for ch in text:
        if ch in "^&|<>()":
            out.append("^" + ch)
        else:
            out.append(ch)
    return "".join(out)


def _discovery(roots: Sequence[str]) -> List[str]:
    lines: List[str] = [f'set "{COMPILER_VAR}="']
    for depth, root in enumerate(roots):
        pad = "    " if depth else ""
        if depth:
            lines.append(f"if not defined {COMPILER_VAR} (")
        lines.append(f"{pad}for /d %%i in ({root}\\v*) do (")
        lines.append(f'{pad}    if exist "%%i\\{COMPILER_EXE}" set "{COMPILER_VAR}=%%i\\{COMPILER_EXE}"')
        lines.append(f"{pad})")
        if depth:
            lines.append(")")
    return lines


def emit_preamble(
    config: BuildConfig,
    stem: str,
    flags: CompilerFlags,
    *,
    roots: Sequence[str] = COMPILER_ROOTS,
) -> str:
    """Render the comment-wrapped batch preamble, ending with the close line and a newline."""
    out: List[str] = []
    emit = out.append
    exe = f"{stem}.exe"

    emit(OPEN_LINE)
    emit("@echo off")
    emit("cls")
    emit("color 0A")
    emit(f"echo {RULE}")
    emit(f"echo   {BANNER_TITLE}")
    emit(f"echo {RULE}")
    emit("echo.")
    emit(f"echo  Target: {exe}")
    emit(f"echo  Arch:   {config.target_architecture.value}")
    emit(f"echo  Mode:   {config.output_type.value}")
    emit("echo.")

    # --- compiler discovery ---
    emit("echo  [1/3] Searching for .NET Framework Compiler...")
    for line in _discovery(roots):
        emit(line)
    emit("")
    emit(f"if not defined {COMPILER_VAR} (")
    emit("    color 0C")
    emit("    echo " + _escape_echo(f"ERROR: C# Compiler ({COMPILER_EXE}) not found in Windows directory."))
    emit("    echo Ensure .NET Framework is installed.")
    emit("    pause")
    emit("    goto :eof")
    emit(")")
    emit("")
    emit("echo  [2/3] Compiler found at:")
    emit(f"echo        %{COMPILER_VAR}%")
    emit("echo.")
    emit("echo  [3/3] Compiling source code...")
    emit("echo.")
    emit("")

    # --- compile this very file ---
    emit(f'"%{COMPILER_VAR}%" {flags.command_line()} {SELF_REF}')
    emit("")

    emit("if %errorlevel% neq 0 (")
    emit("    color 0C")
    emit("    echo.")
    emit("    echo  [!] BUILD FAILED. Please check the source code errors above.")
    emit("    echo.")
    emit("    pause")
    emit("    goto :eof")
    emit(")")
    emit("")
    emit("color 0A")
    emit("echo.")
    emit("echo  [+] BUILD SUCCESSFUL!")
    emit(f"echo      File created: %~dp0{exe}")
    emit("echo.")
    emit("echo  You can now run your genuine application.")
    emit("echo.")
    emit("pause")
    # single-use bootstrapper: remove the script/source hybrid once the exe exists
    emit(f'del {SELF_REF} & exit')
    emit("goto :eof")
    emit(CLOSE_LINE)

    return "\n".join(out) + "\n"
