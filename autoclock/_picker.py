"""
Terminal picker with search-as-you-type style narrowing.

Type a number to choose, text to narrow the list (case-insensitive
substring, then fuzzy ranking when nothing contains the text), an empty
line to widen back out. An empty line on the full list, EOF or Ctrl-C
cancels.
"""

from __future__ import annotations

import sys
from difflib import SequenceMatcher
from typing import Callable, Sequence, TextIO

from .errors import SelectionCancelled

MAX_SHOWN = 20
FUZZY_THRESHOLD = 0.4


def _similarity(a: str, b: str) -> float:
    return SequenceMatcher(None, a.lower(), b.lower()).ratio()


def narrow(choices: Sequence[str], text: str) -> list[int]:
    """Indices of choices matching `text`, best first."""
    needle = text.lower()
    hits = [i for i, c in enumerate(choices) if needle in c.lower()]
    if hits:
        return hits

    # Try fuzzy match
    scored = []
    for i, choice in enumerate(choices):
        score = max(
            _similarity(text, choice),
            max((_similarity(text, part) for part in choice.split("/")), default=0.0),
        )
        if score >= FUZZY_THRESHOLD:
            scored.append((score, i))
    scored.sort(key=lambda x: (-x[0], x[1]))
    return [i for _, i in scored]


def pick(
    prompt: str,
    choices: Sequence[str],
    input_func: Callable[[str], str] = input,
    out: TextIO = sys.stdout,
) -> int:
    """Ask the user to choose one of `choices`; returns its index.

    Raises:
        SelectionCancelled: If the user dismisses the prompt
    """
    if not choices:
        raise SelectionCancelled(f"{prompt}: nothing to choose from")

    candidates = list(range(len(choices)))
    while True:
        for n, idx in enumerate(candidates[:MAX_SHOWN], start=1):
            print(f"  {n:>2}. {choices[idx]}", file=out)
        if len(candidates) > MAX_SHOWN:
            print(f"  ... {len(candidates) - MAX_SHOWN} more, type to narrow", file=out)

        try:
            answer = input_func(f"{prompt}: ").strip()
        except (EOFError, KeyboardInterrupt):
            print(file=out)
            raise SelectionCancelled(prompt)

        if not answer:
            if len(candidates) == len(choices):
                raise SelectionCancelled(prompt)
            candidates = list(range(len(choices)))
            continue

        if answer.isdecimal():
            n = int(answer)
            if 1 <= n <= min(len(candidates), MAX_SHOWN):
                return candidates[n - 1]
            print(f"  No entry {n}", file=out)
            continue

        narrowed = [i for i in narrow(choices, answer) if i in candidates]
        if len(narrowed) == 1:
            return narrowed[0]
        if not narrowed:
            print(f"  No match for {answer!r}", file=out)
            continue
        candidates = narrowed
