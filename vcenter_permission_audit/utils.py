"""Shared helpers for the permission audit."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Sequence, TypeVar, Union

T = TypeVar("T")


def batch_iterable(items: Sequence[T], size: int) -> Iterable[Sequence[T]]:
    """Yield slices of *items* with at most ``size`` members."""

    if size <= 0:
        raise ValueError(f"Batch size must be positive, got {size}")
    for i in range(0, len(items), size):
        yield items[i : i + size]


def write_text_file(path: Union[str, Path], content: str) -> Path:
    """Write *content* as UTF-8 to *path*, creating parent directories."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    return target


def write_json_file(path: Union[str, Path], data: Any) -> Path:
    return write_text_file(path, json.dumps(data, indent=2, default=str) + "\n")


__all__ = ["batch_iterable", "write_json_file", "write_text_file"]
