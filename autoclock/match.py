"""Match Engine: is a context's project eligible for automatic clock-in?"""

from __future__ import annotations

from typing import Iterable, Optional


def is_eligible(
    resolved_name: Optional[str], allow_list: Iterable[str], always: bool = False
) -> bool:
    """Decide eligibility.

    `always` bypasses project matching. Otherwise the resolved project name
    must appear in the allow-list; an unresolved context never matches.
    """
    if always:
        return True
    if resolved_name is None:
        return False
    return any(name == resolved_name for name in allow_list)
