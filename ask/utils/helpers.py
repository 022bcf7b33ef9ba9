"""Small filesystem and text helpers."""

import hashlib
import os
import tempfile
from pathlib import Path

DIRECTORY_KEY_LENGTH = 8


def ensure_dir(path: Path, mode: int = 0o700) -> Path:
    """Create a directory (and parents) if missing and return it."""
    path.mkdir(parents=True, exist_ok=True, mode=mode)
    return path


def directory_key(directory: str) -> str:
    """
    Short, stable identifier for an absolute directory path.

    The first 8 hex characters of the SHA-256 digest are used as the
    context file name, so the same directory always maps to the same file.
    """
    digest = hashlib.sha256(directory.encode("utf-8")).hexdigest()
    return digest[:DIRECTORY_KEY_LENGTH]


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8", mode: int = 0o600) -> None:
    """Write text via a temp file in the same directory, then rename over the target."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.tmp-", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def truncate_text(text: str, limit: int, notice: str) -> str:
    """Cut text to ``limit`` characters and append ``notice`` when it was longer."""
    if len(text) <= limit:
        return text
    return text[:limit] + notice
