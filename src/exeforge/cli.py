from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .ai_service import AIServiceError, convert_to_csharp
from .composer import audit, compose_context
from .config import SettingsError, load_settings
from .delivery import write_artifact
from .lint import lint_artifact
from .models import DEFAULT_SOURCE, BuildConfig, BuildContext, ConfigError, ProjectMetadata
from .schema import RequestError, context_from_request, load_request


def _read_source(arg: str | None) -> str | None:
    if arg is None:
        return None
    if arg == "-":
        return sys.stdin.read()
    return Path(arg).read_text(encoding="utf-8")


def _context_from_args(args: argparse.Namespace) -> BuildContext:
    source = _read_source(args.source)
    if args.request:
        return context_from_request(load_request(Path(args.request)), source_override=source)
    return BuildContext(
        metadata=ProjectMetadata(
            project_name=args.name,
            version=args.version,
            author=args.author,
            copyright=args.copyright,
            description=args.description,
        ),
        config=BuildConfig(
            target_architecture=args.arch,
            output_type=args.mode,
            enable_optimization=not args.no_optimize,
            allow_unsafe=args.unsafe,
        ),
        source_code=source if source is not None else DEFAULT_SOURCE,
    )


def cmd_build(args: argparse.Namespace) -> int:
    ctx = _context_from_args(args)
    artifact = compose_context(ctx)
    for note in audit(ctx.metadata, ctx.source_code):
        print(f"{note.kind} {note.code}: {note.message}", file=sys.stderr)
    if args.stdout:
        sys.stdout.write(artifact)
        return 0
    path = write_artifact(artifact, Path(args.out), ctx.metadata, filename=args.filename, overwrite=not args.no_overwrite)
    print(f"OK. artifact={path}")
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    text = Path(args.artifact).read_text(encoding="utf-8")
    notes = lint_artifact(text)
    for note in notes:
        where = f"line {note.line}" if note.line else "preamble"
        print(f"{note.kind} {note.code} ({where}): {note.message}")
    if notes:
        return 1
    print("OK. preamble is a C# comment and a well-formed batch script")
    return 0


def cmd_convert(args: argparse.Namespace) -> int:
    settings = load_settings(args.config)
    code = convert_to_csharp(args.prompt, not args.windowed, settings=settings)
    if args.out:
        Path(args.out).write_text(code + "\n", encoding="utf-8")
        print(f"OK. source={args.out}")
    else:
        print(code)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="exeforge", description="Compose self-compiling C# installer scripts.")
    sub = p.add_subparsers(dest="command", required=True)

    b = sub.add_parser("build", help="Compose a .cmd artifact that compiles its embedded C# source")
    b.add_argument("--request", help="JSON build request (metadata/config/sourceCode)")
    b.add_argument("--name", default="MyApp", help="Project name (default: MyApp)")
    b.add_argument("--version", default="1.0.0")
    b.add_argument("--author", default="")
    b.add_argument("--copyright", default="")
    b.add_argument("--description", default="")
    b.add_argument("--arch", default="ANYCPU", help="ANYCPU | X64 | X86")
    b.add_argument("--mode", default="CONSOLE", help="CONSOLE | WINDOWED")
    b.add_argument("--no-optimize", action="store_true", help="Emit /optimize- instead of /optimize+")
    b.add_argument("--unsafe", action="store_true", help="Emit /unsafe")
    b.add_argument("--source", help="C# source file, '-' for stdin (default: hello world)")
    b.add_argument("--out", default=".", help="Output folder (default: current directory)")
    b.add_argument("--filename", help="Artifact filename (default: <name>_Installer.cmd)")
    b.add_argument("--no-overwrite", action="store_true", help="Fail if the artifact already exists")
    b.add_argument("--stdout", action="store_true", help="Print the artifact instead of writing it")
    b.set_defaults(func=cmd_build)

    c = sub.add_parser("check", help="Lint an existing artifact against both grammars")
    c.add_argument("artifact")
    c.set_defaults(func=cmd_check)

    v = sub.add_parser("convert", help="Draft C# source from a description via the AI service")
    v.add_argument("prompt")
    v.add_argument("--windowed", action="store_true", help="Target a Windows Forms application")
    v.add_argument("--config", help="Settings JSON file (default: $EXEFORGE_CONFIG)")
    v.add_argument("--out", help="Write the source to this file instead of stdout")
    v.set_defaults(func=cmd_convert)
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (ConfigError, RequestError, SettingsError, AIServiceError, OSError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
