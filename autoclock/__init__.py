"""
autoclock: clock in to org tasks when you switch into a tracked project.

Re-exports the pieces hosts wire together:
- ContextTrigger: subscribes to context changes and runs the guards
- Host / terminal_host: capabilities consumed from the host application
- TaskSelector / SelectionResult: two-stage task choice
- scan / TaskEntry / Location: task source scanning
- is_eligible: project matching
- GitRootResolver / ManifestResolver / get_resolver: project resolvers
"""

from .context import TriggerContext
from .errors import (
    AutoclockError,
    ConfigurationError,
    LocationNotFoundError,
    SelectionCancelled,
)
from .events import CONTEXT_CHANGED, SESSION_STARTED, EventBus, Subscription
from .host import Host, terminal_host
from .match import is_eligible
from .org_outline import Headline, Location, OrgDocument, load_org, parse_org
from .project_detector import (
    GitRootResolver,
    ManifestResolver,
    ProjectResolver,
    get_resolver,
    register_resolver,
)
from .selector import SelectionResult, TaskSelector
from .suppression import SuppressionSet
from .task_scanner import TaskEntry, scan
from .trigger import ContextTrigger

__version__ = "0.3.0"

__all__ = [
    "AutoclockError",
    "CONTEXT_CHANGED",
    "ConfigurationError",
    "ContextTrigger",
    "EventBus",
    "GitRootResolver",
    "Headline",
    "Host",
    "Location",
    "LocationNotFoundError",
    "ManifestResolver",
    "OrgDocument",
    "ProjectResolver",
    "SESSION_STARTED",
    "SelectionCancelled",
    "SelectionResult",
    "Subscription",
    "SuppressionSet",
    "TaskEntry",
    "TaskSelector",
    "TriggerContext",
    "get_resolver",
    "is_eligible",
    "load_org",
    "parse_org",
    "register_resolver",
    "scan",
    "terminal_host",
]
