"""
Trigger contexts: where the user currently is.

A context is the focused document/window. Two contexts are equal when they
name the same thing, which is what suppression membership compares.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

FILE = "file"
PROMPT = "prompt"  # the picker's own input surface
SCRATCH = "scratch"  # unsaved buffer with no backing file


@dataclass(frozen=True)
class TriggerContext:
    """Focused document identity."""

    name: str
    path: Optional[str] = None
    kind: str = FILE

    def __str__(self) -> str:
        return self.name

    @classmethod
    def from_path(cls, path: str) -> "TriggerContext":
        resolved = os.path.realpath(os.path.expanduser(path))
        return cls(name=Path(resolved).name or resolved, path=resolved, kind=FILE)

    @classmethod
    def prompt(cls, name: str = "*autoclock prompt*") -> "TriggerContext":
        return cls(name=name, kind=PROMPT)

    @property
    def is_prompt(self) -> bool:
        return self.kind == PROMPT

    def is_live(self) -> bool:
        """True when the context is backed by a file that exists on disk."""
        if not self.path:
            return False
        try:
            return Path(self.path).exists()
        except OSError:
            return False
