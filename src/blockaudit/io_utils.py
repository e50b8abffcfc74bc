"""I/O utilities for JSON and text file operations.

orjson-backed JSON read/write plus encoding-safe text reading for corpus
files.
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import orjson


def load_json(path: Path) -> Any:
    """Load JSON from a file."""
    return orjson.loads(path.read_bytes())


def dumps_json(obj: Any, *, pretty: bool = True) -> bytes:
    opts = orjson.OPT_SORT_KEYS
    if pretty:
        opts |= orjson.OPT_INDENT_2
    return orjson.dumps(obj, option=opts)


def save_json(obj: Any, path: Path, *, pretty: bool = True) -> None:
    """Save an object as JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(dumps_json(obj, pretty=pretty))


def dump_json(obj: Any) -> None:
    """Write *obj* as indented JSON to stdout."""
    sys.stdout.buffer.write(dumps_json(obj))
    sys.stdout.buffer.write(b"\n")
    sys.stdout.buffer.flush()


def read_text_file(fpath: Path) -> str:
    """Read a text file with encoding fallback: UTF-8 -> CP1252 -> replace.

    OS errors propagate; an unreadable corpus file fails the scan.
    """
    try:
        return fpath.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        try:
            return fpath.read_text(encoding="cp1252")
        except UnicodeDecodeError:
            with open(fpath, encoding="utf-8", errors="replace") as f:
                return f.read()
