from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Tuple

from flask import Flask, Response, render_template, request

from exeforge.ai_service import AIServiceError, convert_to_csharp, validate_and_optimize
from exeforge.composer import audit, compose_context
from exeforge.config import SettingsError, load_settings
from exeforge.delivery import DOWNLOAD_MIMETYPE, download_name
from exeforge.lint import lint_artifact
from exeforge.models import (
    DEFAULT_SOURCE,
    BuildConfig,
    BuildContext,
    ConfigError,
    OutputType,
    ProjectMetadata,
    TargetArch,
)

ARCH_OPTIONS: List[Tuple[str, str]] = [
    (TargetArch.ANYCPU.value, "Any CPU (recommended)"),
    (TargetArch.X64.value, "x64 (64-bit)"),
    (TargetArch.X86.value, "x86 (32-bit)"),
]

OUTPUT_OPTIONS: List[Tuple[str, str]] = [
    (OutputType.CONSOLE.value, "Console Application (.exe)"),
    (OutputType.WINDOWED.value, "Windows GUI (.exe)"),
]


def _stamp(msg: str) -> str:
    return f"[{datetime.now().strftime('%H:%M:%S')}] {msg}"


def _form_logs() -> List[str]:
    return [ln for ln in request.form.getlist("log") if ln.strip()]


def _metadata_from_form() -> ProjectMetadata:
    form = request.form
    return ProjectMetadata(
        project_name=form.get("project_name", "MyApp"),
        version=form.get("version", "1.0.0"),
        author=form.get("author", ""),
        copyright=form.get("copyright", ""),
        description=form.get("description", ""),
    )


def _context_from_form() -> BuildContext:
    form = request.form
    metadata = _metadata_from_form()
    # unchecked checkboxes are simply absent from the form
    config = BuildConfig(
        target_architecture=form.get("architecture", TargetArch.ANYCPU.value),
        output_type=form.get("output_type", OutputType.CONSOLE.value),
        enable_optimization=form.get("enable_optimization") == "on",
        allow_unsafe=form.get("allow_unsafe") == "on",
    )
    return BuildContext(
        metadata=metadata,
        config=config,
        source_code=form.get("source_code", DEFAULT_SOURCE),
        build_logs=_form_logs(),
    )


def _rejected_context() -> BuildContext:
    # keeps what the user typed when the configuration part is invalid
    return BuildContext(
        metadata=_metadata_from_form(),
        config=BuildConfig(),
        source_code=request.form.get("source_code", DEFAULT_SOURCE),
        build_logs=_form_logs(),
    )


app = Flask(__name__)


def _render_page(
    *,
    ctx: BuildContext | None = None,
    raw_input: str = "",
    error: str = "",
    notes: List[Dict[str, str]] | None = None,
    preview: str = "",
    status: int = 200,
):
    ctx = ctx or BuildContext(metadata=ProjectMetadata(), config=BuildConfig())
    body = render_template(
        "index.html",
        metadata=ctx.metadata,
        config=ctx.config,
        source_code=ctx.source_code,
        logs=ctx.build_logs,
        raw_input=raw_input,
        error=error,
        notes=notes or [],
        preview=preview,
        arch_options=ARCH_OPTIONS,
        output_options=OUTPUT_OPTIONS,
    )
    return body, status


@app.get("/")
def index():
    return _render_page()


@app.post("/convert")
def convert():
    raw_input = request.form.get("raw_input", "")
    try:
        ctx = _context_from_form()
    except ConfigError as exc:
        return _render_page(ctx=_rejected_context(), raw_input=raw_input, error=str(exc), status=400)

    if not raw_input.strip():
        return _render_page(ctx=ctx, raw_input=raw_input)

    ctx.build_logs.append(_stamp("Sending request to Gemini AI..."))
    try:
        ctx.source_code = convert_to_csharp(raw_input, ctx.config.is_console, settings=load_settings())
        ctx.build_logs.append(_stamp("Code transpiled successfully."))
    except (AIServiceError, SettingsError, ValueError) as exc:
        app.logger.warning("convert failed: %s", exc)
        ctx.build_logs.append(_stamp("Transpilation failed."))
        return _render_page(ctx=ctx, raw_input=raw_input, error=str(exc), status=503)
    return _render_page(ctx=ctx, raw_input=raw_input)


@app.post("/validate")
def validate():
    raw_input = request.form.get("raw_input", "")
    try:
        ctx = _context_from_form()
    except ConfigError as exc:
        return _render_page(ctx=_rejected_context(), raw_input=raw_input, error=str(exc), status=400)

    ctx.build_logs.append(_stamp("Validating syntax and security..."))
    try:
        result = validate_and_optimize(ctx.source_code, settings=load_settings())
    except (AIServiceError, SettingsError, ValueError) as exc:
        app.logger.warning("validate failed: %s", exc)
        ctx.build_logs.append(_stamp("Validation failed."))
        return _render_page(ctx=ctx, raw_input=raw_input, error=str(exc), status=503)
    ctx.source_code = result.corrected_code
    ctx.build_logs.append(_stamp(f"Validation finished: {result.analysis}"))
    return _render_page(ctx=ctx, raw_input=raw_input)


@app.post("/build")
def build():
    try:
        ctx = _context_from_form()
    except ConfigError as exc:
        return _render_page(ctx=_rejected_context(), error=str(exc), status=400)

    ctx.build_logs.append(_stamp("Initialising build sequence..."))
    artifact = compose_context(ctx)
    notes = [
        {"kind": n.kind, "code": n.code, "message": n.message}
        for n in audit(ctx.metadata, ctx.source_code)
    ]
    lint_notes = lint_artifact(artifact)
    if lint_notes:
        # the preamble is generated; a lint failure here is a generator bug
        app.logger.error("generated preamble failed lint: %s", [n.code for n in lint_notes])
        notes += [{"kind": n.kind, "code": n.code, "message": n.message} for n in lint_notes]
        return _render_page(ctx=ctx, error="Generated preamble failed self-check.", notes=notes, status=500)

    if request.form.get("action") == "preview":
        ctx.build_logs.append(_stamp("Build artifact ready (preview)."))
        return _render_page(ctx=ctx, notes=notes, preview=artifact)

    filename = download_name(ctx.metadata)
    app.logger.info("artifact %s composed (%d chars)", filename, len(artifact))
    return Response(
        artifact,
        mimetype=DOWNLOAD_MIMETYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


if __name__ == "__main__":
    app.run(host="127.0.0.1", port=8000, debug=True)
