"""Shared fixtures for autoclock tests."""

import sys
from pathlib import Path

# Add this directory to path for _fixtures import
sys.path.insert(0, str(Path(__file__).parent))

import pytest  # noqa: E402

from _fixtures import SAMPLE_ORG, RecordingNotifier, ScriptedPicker, write_config  # noqa: E402
from autoclock.context import TriggerContext  # noqa: E402
from autoclock.host import Host  # noqa: E402


@pytest.fixture
def org_file(tmp_path):
    """Org file with TODO / TODO (nested) / DONE entries."""
    path = tmp_path / "tasks.org"
    path.write_text(SAMPLE_ORG)
    return path


@pytest.fixture
def project_context(tmp_path):
    """Context for a file inside a project named proj-A (pyproject manifest)."""
    root = tmp_path / "proj-a"
    (root / "src").mkdir(parents=True)
    (root / "pyproject.toml").write_text('[project]\nname = "proj-A"\n')
    source = root / "src" / "main.py"
    source.write_text("print('hi')\n")
    return TriggerContext.from_path(str(source))


@pytest.fixture
def other_context(tmp_path):
    """Context for a file in a second project, proj-B."""
    root = tmp_path / "proj-b"
    root.mkdir()
    (root / "package.json").write_text('{"name": "proj-B"}')
    source = root / "index.js"
    source.write_text("")
    return TriggerContext.from_path(str(source))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_host(tmp_path, org_file, notifier):
    """Build a Host over the sample org file with a scripted picker."""

    def _make(*answers, **overrides):
        sections = {
            "projects": {"allow_list": ["proj-A"], "always": False, "resolver": "manifest"},
            "tasks": {"sources": [str(org_file)], "query": "/!"},
            "display": {"color": False},
            "clock": {"idle_minutes": 15},
        }
        for section, values in overrides.items():
            sections.setdefault(section, {}).update(values)
        cfg = write_config(tmp_path / "settings.json", **sections)
        return Host(cfg=cfg, picker=ScriptedPicker(*answers), notifier=notifier)

    return _make
