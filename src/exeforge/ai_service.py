"""Generative-AI helpers used by the wizard to draft and review C# source.

Both helpers talk to the Gemini ``generateContent`` REST endpoint. Neither is
needed to compose an artifact; they only produce the embedded source text.
"""

from __future__ import annotations
from dataclasses import dataclass
import json
import logging
import re
from typing import Any, Dict, List, Optional

import requests

from .config import Settings, load_settings

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = """You are a senior C# backend developer. Translate the user's input
(pseudo code, Python, JavaScript or plain text) into valid, compilable C# code.

RULES:
1. The output must be a complete C# file (using statements, namespace, class Program, Main method).
2. Do NOT use external NuGet packages. Only standard .NET System libraries (System, System.IO, System.Net, ...).
3. The code must be compatible with .NET Framework 4.5+.
4. For a console application use Console.WriteLine/ReadLine. For a windowed application use MessageBox.Show (System.Windows.Forms).
5. Answer ONLY with the code, no markdown backticks."""

FALLBACK_SOURCE = """// Code generation failed.
// Please enter C# code manually.

using System;
class Program {
    static void Main() {
        Console.WriteLine("Error generating code.");
        Console.ReadLine();
    }
}"""

VALIDATION_FAILED = "AI validation failed. Original code kept."

_FENCE_RE = re.compile(r"```(?:csharp|cs|c#)?", re.IGNORECASE)


class AIServiceError(Exception):
    """Raised when the AI service cannot be reached or returns nothing usable."""


@dataclass(frozen=True)
class ValidationResult:
    corrected_code: str
    analysis: str


def _require_key(settings: Settings) -> str:
    if not settings.api_key:
        raise AIServiceError("API key is not defined (set GEMINI_API_KEY or API_KEY)")
    return settings.api_key


def generate_content(
    prompt: str,
    *,
    settings: Settings,
    system_instruction: Optional[str] = None,
    temperature: Optional[float] = None,
    response_mime_type: Optional[str] = None,
) -> str:
    """POST one prompt and return the concatenated text parts of the first candidate."""
    key = _require_key(settings)
    url = f"{settings.api_base}/models/{settings.model}:generateContent"
    payload: Dict[str, Any] = {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
    }
    if system_instruction:
        payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
    generation: Dict[str, Any] = {}
    if temperature is not None:
        generation["temperature"] = temperature
    if response_mime_type:
        generation["responseMimeType"] = response_mime_type
    if generation:
        payload["generationConfig"] = generation

    try:
        resp = requests.post(
            url,
            json=payload,
            headers={"x-goog-api-key": key},
            timeout=settings.timeout,
        )
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as exc:
        raise AIServiceError(f"generateContent request failed: {exc}") from exc

    return _candidate_text(data)


def _candidate_text(data: Any) -> str:
    if not isinstance(data, dict):
        raise AIServiceError(f"Unexpected reply type from AI: {type(data).__name__}")
    candidates = data.get("candidates") or []
    if not isinstance(candidates, list):
        raise AIServiceError("Malformed AI reply: 'candidates' is not a list")

    parts: List[Any] = []
    for cand in candidates:
        content = cand.get("content") if isinstance(cand, dict) else None
        if not isinstance(content, dict):
            continue
        found = content.get("parts") or []
        if isinstance(found, list) and found:
            parts = found
            break
    text = "".join(
        p["text"] for p in parts
        if isinstance(p, dict) and isinstance(p.get("text"), str)
    )
    if not text:
        raise AIServiceError("No response text from AI")
    return text


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def convert_to_csharp(user_prompt: str, is_console: bool, *, settings: Optional[Settings] = None) -> str:
    """Draft a complete C# program for ``user_prompt``.

    Raises AIServiceError only for a missing key; request failures return a
    small fallback program so the wizard always has something to show.
    """
    settings = settings or load_settings()
    _require_key(settings)
    app_kind = "Console application" if is_console else "Windows Forms application (GUI)"
    prompt = (
        f'Context: create a C# file for this requirement: "{user_prompt}".\n'
        f"App type: {app_kind}.\n\n"
        "IMPORTANT: return the plain C# code, ready for the compiler."
    )
    try:
        text = generate_content(
            prompt,
            settings=settings,
            system_instruction=SYSTEM_INSTRUCTION,
            temperature=settings.temperature,
        )
    except AIServiceError as exc:
        logger.warning("C# conversion failed: %s", exc)
        return FALLBACK_SOURCE
    return strip_code_fences(text)


def validate_and_optimize(source_code: str, *, settings: Optional[Settings] = None) -> ValidationResult:
    settings = settings or load_settings()
    _require_key(settings)
    prompt = (
        "Analyse the following C# code for compile errors and security problems.\n"
        "Fix the errors so it compiles with csc.exe (Microsoft .NET compiler).\n\n"
        f"Code:\n{source_code}\n\n"
        "Answer in JSON format:\n"
        "{\n"
        '  "analysis": "Short summary of what was changed",\n'
        '  "correctedCode": "The complete corrected code as a string"\n'
        "}"
    )
    try:
        text = generate_content(prompt, settings=settings, response_mime_type="application/json")
        data = json.loads(text)
    except (AIServiceError, json.JSONDecodeError) as exc:
        logger.warning("C# validation failed: %s", exc)
        return ValidationResult(corrected_code=source_code, analysis=VALIDATION_FAILED)

    corrected = data.get("correctedCode") if isinstance(data, dict) else None
    if not isinstance(corrected, str) or not corrected.strip():
        logger.warning("C# validation failed: reply has no usable correctedCode")
        return ValidationResult(corrected_code=source_code, analysis=VALIDATION_FAILED)
    analysis = data.get("analysis")
    return ValidationResult(
        corrected_code=corrected,
        analysis=analysis if isinstance(analysis, str) else "",
    )
