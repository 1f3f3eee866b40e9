from pathlib import Path

import pytest

from exeforge.composer import compose
from exeforge.delivery import atomic_write_text, download_name, write_artifact
from exeforge.models import BuildConfig, ProjectMetadata


def test_write_artifact_is_byte_exact(tmp_path: Path):
    meta = ProjectMetadata(project_name="Calc")
    artifact = compose(meta, BuildConfig(), "class A {}\r\n")
    path = write_artifact(artifact, tmp_path, meta)
    assert path == tmp_path / "Calc_Installer.cmd"
    assert path.read_bytes() == artifact.encode("utf-8")
    assert not list(tmp_path.glob("*.tmp__writing__"))


def test_write_artifact_respects_overwrite(tmp_path: Path):
    meta = ProjectMetadata(project_name="Calc")
    write_artifact("first", tmp_path, meta)
    with pytest.raises(FileExistsError):
        write_artifact("second", tmp_path, meta, overwrite=False)
    write_artifact("second", tmp_path, meta)
    assert (tmp_path / "Calc_Installer.cmd").read_text(encoding="utf-8") == "second"


def test_download_name():
    meta = ProjectMetadata(project_name="Calc")
    assert download_name(meta) == "Calc_Installer.cmd"
    assert download_name(meta, "../evil.cmd") == "evil.cmd"
    assert download_name(meta, "///") == "Calc_Installer.cmd"


def test_atomic_write_creates_parents(tmp_path: Path):
    dst = tmp_path / "a" / "b" / "x.cmd"
    atomic_write_text(dst, "hi")
    assert dst.read_text(encoding="utf-8") == "hi"
