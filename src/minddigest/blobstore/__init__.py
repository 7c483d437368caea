"""Location of the on-disk data written by the entry store."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

_PACKAGE_DIR = Path(__file__).resolve().parent

#: Environment variable that relocates the blob root, e.g. onto a mounted volume.
BLOB_ROOT_ENV = "MINDDIGEST_DATA_DIR"

#: Default location of stored digest entries.
DEFAULT_BLOB_ROOT = _PACKAGE_DIR / "data"


_Pathish = Union[str, Path]


def resolve_blob_root(blob_root: _Pathish | None = None) -> Path:
    """Return a :class:`Path` pointing at the blob root.

    An explicit ``blob_root`` wins, then ``MINDDIGEST_DATA_DIR``, then
    :data:`DEFAULT_BLOB_ROOT`. The directory is not created.
    """

    if blob_root is not None:
        return Path(blob_root)
    env_root = os.environ.get(BLOB_ROOT_ENV)
    if env_root:
        return Path(env_root)
    return DEFAULT_BLOB_ROOT


def ensure_blob_root(blob_root: _Pathish | None = None) -> Path:
    """Ensure the blob root exists and return it."""

    root = resolve_blob_root(blob_root)
    root.mkdir(parents=True, exist_ok=True)
    return root


__all__ = [
    "BLOB_ROOT_ENV",
    "DEFAULT_BLOB_ROOT",
    "ensure_blob_root",
    "resolve_blob_root",
]
