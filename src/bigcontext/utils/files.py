"""Utility helpers for working with files."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from bigcontext.exceptions import DocumentReadError

COMBINED_SUFFIX = ".combined_results.txt"


def document_key(path: Path) -> Path:
    """Return the document path without its final extension.

    Used as the cache directory of the document and as the stem of its
    combined output file. Documents that differ only in their extension
    (``doc.txt`` and ``doc.md`` in one folder) share a key, and therefore
    share cached results and the combined output. This keeps the on-disk
    layout of earlier runs readable; process such files one at a time and
    run ``clean`` in between.
    """
    path = Path(path)
    return path.with_suffix("") if path.suffix else path


def cache_directory(path: Path) -> Path:
    """Return the directory holding chunk and result files for ``path``.

    Files without an extension would collide with their own directory, so
    they get a ``_cache`` suffix instead.
    """
    path = Path(path)
    key = document_key(path)
    if key == path:
        return path.with_name(path.name + "_cache")
    return key


def combined_output_path(path: Path) -> Path:
    key = document_key(path)
    return key.with_name(key.name + COMBINED_SUFFIX)


def read_document(path: Path) -> str:
    """Read a UTF-8 text document exactly as stored, line endings included."""
    path = Path(path)
    try:
        return path.read_bytes().decode("utf-8")
    except FileNotFoundError as exc:
        raise DocumentReadError(path, "no such file") from exc
    except IsADirectoryError as exc:
        raise DocumentReadError(path, "is a directory") from exc
    except UnicodeDecodeError as exc:
        raise DocumentReadError(path, "not valid UTF-8 text") from exc
    except OSError as exc:
        raise DocumentReadError(path, exc.strerror or str(exc)) from exc


def write_text_atomic(path: Path, text: str) -> None:
    """Write ``text`` to ``path`` through a temporary file and ``os.replace``.

    Readers see either the previous file or the complete new one.
    """
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
