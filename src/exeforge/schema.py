from __future__ import annotations
from dataclasses import dataclass
from functools import lru_cache
import json
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema

from .models import DEFAULT_SOURCE, BuildConfig, BuildContext, ProjectMetadata

SCHEMA_PATH = Path(__file__).resolve().parent / "build_request.schema.json"


@dataclass(frozen=True)
class RequestNote:
    code: str
    message: str
    path: str = ""


class RequestError(ValueError):
    def __init__(self, note: RequestNote):
        super().__init__(note.message)
        self.note = note


@lru_cache(maxsize=1)
def load_schema() -> Dict[str, Any]:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def validate_request(data: Any) -> None:
    try:
        jsonschema.validate(instance=data, schema=load_schema())
    except jsonschema.ValidationError as exc:
        path = "/".join(str(p) for p in exc.absolute_path)
        raise RequestError(RequestNote(
            code="EXF-REQ-0001",
            message=f"Invalid build request at '{path or '<root>'}': {exc.message}",
            path=path,
        )) from exc


def context_from_request(data: Dict[str, Any], *, source_override: Optional[str] = None) -> BuildContext:
    """Validate a wizard-shaped request dict and build a BuildContext from it."""
    validate_request(data)
    source = source_override if source_override is not None else data.get("sourceCode", DEFAULT_SOURCE)
    return BuildContext(
        metadata=ProjectMetadata.from_dict(data["metadata"]),
        config=BuildConfig.from_dict(data["config"]),
        source_code=source,
    )


def load_request(path: Path) -> Dict[str, Any]:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise RequestError(RequestNote(
            code="EXF-REQ-0002",
            message=f"Build request {path} is not valid JSON: {exc}",
        )) from exc
