#!/usr/bin/env python3
"""
writer.py - JSON output for the rule set and CMP signatures.

Files are written to a temp file next to the destination and then moved into
place, so a failed write never leaves a half-written rule file behind.
"""
from __future__ import annotations

import contextlib
import json
import os
from pathlib import Path
from typing import Any

import aiofiles


class PersistenceError(OSError):
    """An output file could not be written."""

    def __init__(self, path: Path, cause: OSError):
        super().__init__(f"Could not write {path}: {cause.strerror or cause}")
        self.path = path
        self.cause = cause


def to_json(data: Any) -> str:
    """Two-space indented JSON with a trailing newline."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


async def save_json(path: str | os.PathLike[str], data: Any) -> Path:
    """
    Save data as indented JSON, creating parent directories as needed.

    Raises:
        PersistenceError: if the directory or file can't be written
    """
    out_path = Path(path)
    temp_path = out_path.with_name(f"{out_path.name}.{os.getpid()}.tmp")
    content = to_json(data)
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(temp_path, "w", encoding="utf-8", newline="\n") as f:
            await f.write(content)
        temp_path.replace(out_path)
    except OSError as e:
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)
        raise PersistenceError(out_path, e) from e
    return out_path
