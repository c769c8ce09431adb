"""
Version of the installed cybercar-sdk distribution.

A source checkout that was never installed has no distribution metadata; the
version is then read from the checkout's pyproject.toml.
"""
import importlib.metadata
import pathlib
from typing import Optional

import tomli

DISTRIBUTION = "cybercar-sdk"
UNKNOWN_VERSION = "0.1.0"
PYPROJECT_PATH = pathlib.Path(__file__).resolve().parent.parent / "pyproject.toml"


def pyproject_version(path: pathlib.Path = PYPROJECT_PATH) -> Optional[str]:
    """Return ``project.version`` from ``path``, or None if it cannot be read."""
    try:
        with path.open("rb") as f:
            return str(tomli.load(f)["project"]["version"])
    except (OSError, KeyError, TypeError, tomli.TOMLDecodeError):
        return None


def get_version() -> str:
    try:
        return importlib.metadata.version(DISTRIBUTION)
    except importlib.metadata.PackageNotFoundError:
        return pyproject_version() or UNKNOWN_VERSION


__version__ = get_version()
