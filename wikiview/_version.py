"""Package version: installed metadata first, then pyproject.toml in a source checkout."""
from __future__ import annotations

import re
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

_PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"
_VERSION_RE = re.compile(r'^version\s*=\s*"([^"]+)"', re.MULTILINE)


def read_version(pyproject: Path = _PYPROJECT) -> str:
    try:
        return version("wikiview")
    except PackageNotFoundError:
        pass
    try:
        match = _VERSION_RE.search(pyproject.read_text(encoding="utf-8"))
    except OSError:
        return "0.0.0"
    return match.group(1) if match else "0.0.0"


__version__: str = read_version()
