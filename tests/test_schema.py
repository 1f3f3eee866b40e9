import json
from pathlib import Path

import jsonschema
import pytest

from exeforge.models import DEFAULT_SOURCE, OutputType, TargetArch
from exeforge.schema import RequestError, context_from_request, load_request, load_schema, validate_request


def _request(**overrides):
    req = {
        "metadata": {"projectName": "Calc", "version": "2.0.0"},
        "config": {
            "architecture": "X64",
            "outputType": "CONSOLE",
            "enableOptimization": True,
            "allowUnsafe": False,
        },
        "sourceCode": "// body",
    }
    req.update(overrides)
    return req


def test_schema_is_valid_draft_2020_12():
    jsonschema.Draft202012Validator.check_schema(load_schema())


def test_request_to_context():
    ctx = context_from_request(_request())
    assert ctx.metadata.project_name == "Calc"
    assert ctx.metadata.version == "2.0.0"
    assert ctx.config.target_architecture is TargetArch.X64
    assert ctx.config.output_type is OutputType.CONSOLE
    assert ctx.source_code == "// body"


def test_source_defaults_and_override():
    req = _request()
    del req["sourceCode"]
    assert context_from_request(req).source_code == DEFAULT_SOURCE
    assert context_from_request(req, source_override="x").source_code == "x"


@pytest.mark.parametrize("mutate, path", [
    (lambda r: r["config"].update(architecture="ARM64"), "config/architecture"),
    (lambda r: r["config"].update(outputType="console"), "config/outputType"),
    (lambda r: r["config"].update(allowUnsafe="yes"), "config/allowUnsafe"),
    (lambda r: r["metadata"].pop("projectName"), "metadata"),
    (lambda r: r.update(extra=1), ""),
])
def test_invalid_requests_are_rejected(mutate, path):
    req = _request()
    mutate(req)
    with pytest.raises(RequestError) as ei:
        validate_request(req)
    assert ei.value.note.code == "EXF-REQ-0001"
    assert ei.value.note.path == path
    assert isinstance(ei.value.__cause__, jsonschema.ValidationError)


def test_load_request_rejects_bad_json(tmp_path: Path):
    p = tmp_path / "req.json"
    p.write_text("{not json", encoding="utf-8")
    with pytest.raises(RequestError) as ei:
        load_request(p)
    assert ei.value.note.code == "EXF-REQ-0002"


def test_load_request_roundtrip(tmp_path: Path):
    p = tmp_path / "req.json"
    p.write_text(json.dumps(_request()), encoding="utf-8")
    assert load_request(p) == _request()
