from __future__ import annotations
import os
from pathlib import Path
import time
from typing import Optional

from werkzeug.utils import secure_filename

from .composer import suggested_filename
from .models import ProjectMetadata

DOWNLOAD_MIMETYPE = "text/plain"


def atomic_write_text(dst: Path, text: str, retries: int = 3, sleep_s: float = 0.2) -> None:
    """
    Write to a temp file next to ``dst`` and replace. Retries on
    OSError, PermissionError included.
    newline="" keeps the artifact byte-for-byte as composed.
    """
    dst.parent.mkdir(parents=True, exist_ok=True)
    tmp = dst.parent / (dst.name + ".tmp__writing__")

    last_err: Optional[BaseException] = None
    for i in range(retries):
        try:
            with open(tmp, "w", encoding="utf-8", newline="") as f:
                f.write(text)
            os.replace(tmp, dst)
            return
        except OSError as e:
            last_err = e
            time.sleep(sleep_s * (i + 1))

    if tmp.exists():
        tmp.unlink(missing_ok=True)
    raise last_err if last_err else RuntimeError("atomic_write_text failed without exception?")


def download_name(metadata: ProjectMetadata, requested: Optional[str] = None) -> str:
    if requested:
        name = secure_filename(requested)
        if name:
            return name
    return suggested_filename(metadata)


def write_artifact(
    artifact: str,
    out_dir: Path,
    metadata: ProjectMetadata,
    *,
    filename: Optional[str] = None,
    overwrite: bool = True,
) -> Path:
    dst = Path(out_dir) / download_name(metadata, filename)
    if dst.exists() and not overwrite:
        raise FileExistsError(f"Artifact already exists: {dst}")
    atomic_write_text(dst, artifact)
    return dst
