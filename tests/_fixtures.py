"""Shared test doubles for autoclock tests."""

import json
import sys
from pathlib import Path

# Add repo root to path for imports
_root = str(Path(__file__).parent.parent)
if _root not in sys.path:
    sys.path.insert(0, _root)

from autoclock._config import ClockConfig  # noqa: E402
from autoclock.errors import SelectionCancelled  # noqa: E402

CANCEL = "cancel"

SAMPLE_ORG = """\
#+TITLE: Tasks
* TODO Write report :work:
** TODO Collect numbers
* DONE Ship release
"""


class ScriptedPicker:
    """Picker that answers from a script: an index, or CANCEL."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.calls = []

    def __call__(self, prompt, choices):
        self.calls.append((prompt, list(choices)))
        if not self.answers:
            raise SelectionCancelled(prompt)
        answer = self.answers.pop(0)
        if answer == CANCEL:
            raise SelectionCancelled(prompt)
        return answer


class RecordingNotifier:
    """Collects (level, message) notices."""

    def __init__(self):
        self.notices = []

    def __call__(self, level, message):
        self.notices.append((level, message))

    def levels(self):
        return [level for level, _ in self.notices]


def write_config(path: Path, **sections) -> ClockConfig:
    """Write a settings file and return a config that re-reads it on every access."""
    path.write_text(json.dumps(sections))
    return ClockConfig(path=path, check_interval=0)
