"""Link-path parsing.

Turns the raw path captured from a reference into a normalized link path
that the resolver can look up.  A path that cannot be normalized is a
malformed reference and is skipped rather than classified.
"""
from __future__ import annotations

import posixpath
from dataclasses import dataclass
from pathlib import PurePosixPath
from urllib.parse import unquote

ANCHOR_SEPARATOR = "#^"
MARKDOWN_SUFFIX = ".md"

_FORBIDDEN_PATH_CHARS = frozenset("#|^[]")


@dataclass(frozen=True, slots=True)
class LinkTarget:
    """A parsed reference target; an empty ``path`` means the source document."""

    path: str
    anchor_key: str

    @property
    def is_self_link(self) -> bool:
        return not self.path


def split_link_target(text: str) -> tuple[str, str] | None:
    """Split ``path#^key`` at the last anchor separator.

    Returns None if there is no separator or the key is empty.
    """
    path, sep, key = text.rpartition(ANCHOR_SEPARATOR)
    if not sep or not key:
        return None
    return (path, key)


def normalize_link_path(raw_path: str) -> str | None:
    """Normalize a raw link path, or return None if it is malformed.

    Strips whitespace, percent-decodes inline-link paths, drops a leading
    ``./`` and a trailing ``.md``.
    """
    path = raw_path.strip()
    if "%" in path:
        path = unquote(path)
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    if path.lower().endswith(MARKDOWN_SUFFIX):
        path = path[: -len(MARKDOWN_SUFFIX)]
    if any(ch in _FORBIDDEN_PATH_CHARS for ch in path):
        return None
    return path


def parse_link(text: str) -> LinkTarget | None:
    """Parse combined ``path#^key`` text into a ``LinkTarget``."""
    parts = split_link_target(text)
    if parts is None:
        return None
    path = normalize_link_path(parts[0])
    if path is None:
        return None
    return LinkTarget(path=path, anchor_key=parts[1])


def join_relative(source_doc_id: str, path: str) -> str | None:
    """Resolve *path* against the folder of *source_doc_id*.

    Returns None if the result escapes the corpus root.
    """
    folder = str(PurePosixPath(source_doc_id).parent)
    joined = posixpath.normpath(posixpath.join("" if folder == "." else folder, path))
    if joined == ".." or joined.startswith("../") or joined.startswith("/"):
        return None
    return joined
