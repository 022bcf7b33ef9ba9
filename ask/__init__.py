"""
ask - a conversational assistant for your terminal that remembers each directory
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path


def _get_version() -> str:
    """Read version from pyproject.toml, falling back to installed metadata."""
    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
    if pyproject_path.exists():
        import tomllib

        data = tomllib.loads(pyproject_path.read_text())
        return data["project"]["version"]
    try:
        return version("ask-cli")
    except PackageNotFoundError:
        return "0.0.0-unknown"


__version__ = _get_version()
