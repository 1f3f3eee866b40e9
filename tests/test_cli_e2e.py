from __future__ import annotations
from pathlib import Path
import json
import subprocess
import sys
import os

REPO_ROOT = Path(__file__).resolve().parents[1]


def run_exeforge(args, stdin: str | None = None):
    cmd = [sys.executable, "-m", "exeforge"] + args
    env = {**os.environ, "PYTHONPATH": str(REPO_ROOT / "src")}
    return subprocess.run(cmd, cwd=REPO_ROOT, env=env, capture_output=True, text=True, input=stdin)


def test_build_writes_installer(tmp_path: Path):
    src = tmp_path / "calc.cs"
    src.write_text("// body", encoding="utf-8")
    p = run_exeforge([
        "build", "--name", "Calc", "--arch", "X64", "--mode", "CONSOLE",
        "--source", str(src), "--out", str(tmp_path),
    ])
    assert p.returncode == 0, p.stderr
    out = tmp_path / "Calc_Installer.cmd"
    assert out.exists()
    text = out.read_text(encoding="utf-8")
    assert text.endswith("*/\n// body")
    assert "/platform:X64" in text
    assert "OK. artifact=" in p.stdout


def test_build_then_check(tmp_path: Path):
    p = run_exeforge(["build", "--name", "Gui", "--mode", "windowed", "--unsafe", "--out", str(tmp_path)])
    assert p.returncode == 0, p.stderr
    artifact = tmp_path / "Gui_Installer.cmd"
    c = run_exeforge(["check", str(artifact)])
    assert c.returncode == 0, c.stdout
    assert "OK." in c.stdout


def test_check_reports_broken_preamble(tmp_path: Path):
    bad = tmp_path / "bad.cmd"
    bad.write_text("/*\n@echo off\nif 1==1 (\n    echo oops (x)\n)\necho hi\n*/\nclass A {}\n", encoding="utf-8")
    c = run_exeforge(["check", str(bad)])
    assert c.returncode == 1
    assert "EXF-BAT-0002" in c.stdout
    assert "EXF-BAT-0004" in c.stdout


def test_build_stdout_from_stdin():
    p = run_exeforge(["build", "--name", "Calc", "--source", "-", "--stdout", "--no-optimize"], stdin="class P {}\n")
    assert p.returncode == 0, p.stderr
    assert p.stdout.startswith("/* 2>NUL\n@echo off\n")
    assert p.stdout.endswith("*/\nclass P {}\n")
    assert "/optimize-" in p.stdout


def test_build_from_request(tmp_path: Path):
    req = tmp_path / "req.json"
    req.write_text(json.dumps({
        "metadata": {"projectName": "My App! 2.0"},
        "config": {"architecture": "X86", "outputType": "WINDOWED", "enableOptimization": True, "allowUnsafe": False},
        "sourceCode": "class W {}",
    }), encoding="utf-8")
    p = run_exeforge(["build", "--request", str(req), "--out", str(tmp_path)])
    assert p.returncode == 0, p.stderr
    text = (tmp_path / "My_App_2.0_Installer.cmd").read_text(encoding="utf-8")
    assert '/out:"MyApp20.exe"' in text
    assert "/reference:System.Drawing.dll" in text
    assert text.endswith("class W {}")


def test_build_warns_on_empty_name(tmp_path: Path):
    p = run_exeforge(["build", "--name", "!!!", "--out", str(tmp_path)])
    assert p.returncode == 0, p.stderr
    assert "EXF-NAME-0001" in p.stderr
    assert (tmp_path / "App_Installer.cmd").exists()


def test_invalid_arch_exits_2(tmp_path: Path):
    p = run_exeforge(["build", "--arch", "ARM64", "--out", str(tmp_path)])
    assert p.returncode == 2
    assert "Invalid target_architecture" in p.stderr


def test_invalid_request_exits_2(tmp_path: Path):
    req = tmp_path / "req.json"
    req.write_text(json.dumps({"metadata": {"projectName": "x"}}), encoding="utf-8")
    p = run_exeforge(["build", "--request", str(req), "--out", str(tmp_path)])
    assert p.returncode == 2
    assert "Invalid build request" in p.stderr


def test_no_overwrite(tmp_path: Path):
    args = ["build", "--name", "Calc", "--out", str(tmp_path), "--no-overwrite"]
    assert run_exeforge(args).returncode == 0
    p = run_exeforge(args)
    assert p.returncode == 2
    assert "already exists" in p.stderr


def test_convert_without_key_exits_2():
    env_keys = ("GEMINI_API_KEY", "API_KEY", "EXEFORGE_CONFIG")
    cmd = [sys.executable, "-m", "exeforge", "convert", "a calculator"]
    env = {k: v for k, v in os.environ.items() if k not in env_keys}
    env["PYTHONPATH"] = str(REPO_ROOT / "src")
    p = subprocess.run(cmd, cwd=REPO_ROOT, env=env, capture_output=True, text=True)
    assert p.returncode == 2
    assert "API key is not defined" in p.stderr
