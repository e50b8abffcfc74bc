"""Scan configuration.

``ScanConfig`` holds every tunable of a scan.  It can be loaded from a JSON
object file; command-line flags override file values via ``with_overrides``.
"""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from blockaudit.io_utils import load_json

CONTEXT_WINDOW = 20


@dataclass(frozen=True, slots=True)
class ScanConfig:
    """Options controlling sanitization, context extraction and parallelism."""

    window_size: int = CONTEXT_WINDOW
    greedy_front_matter: bool = True
    ignore_inline_code: bool = True
    ignore_html: bool = True
    ignore_bare_urls: bool = True
    extensions: tuple[str, ...] = (".md",)
    workers: int = 1

    def __post_init__(self) -> None:
        if self.window_size < 0:
            raise ValueError(f"window_size must be >= 0, got {self.window_size}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if not self.extensions:
            raise ValueError("extensions cannot be empty")

    def with_overrides(self, **overrides: Any) -> ScanConfig:
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


def config_from_dict(data: dict[str, Any]) -> ScanConfig:
    """Build a ``ScanConfig`` from a plain mapping, rejecting unknown keys."""
    known = {f.name for f in fields(ScanConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
    values = dict(data)
    if "extensions" in values:
        exts = values["extensions"]
        if isinstance(exts, str):
            exts = [exts]
        values["extensions"] = tuple(
            e if e.startswith(".") else f".{e}" for e in exts
        )
    return ScanConfig(**values)


def load_scan_config(path: Path) -> ScanConfig:
    """Load a ``ScanConfig`` from a JSON object file."""
    data = load_json(path)
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a JSON object: {path}")
    return config_from_dict(data)
