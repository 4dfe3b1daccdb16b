"""
Task Source Scanner: candidate task entries from one org file.

scan() opens the source read-only, applies the match query and returns
a fully materialized list (the picker needs every entry up front to
filter as the user types). Each call re-reads the file; nothing is cached.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ._query import compile_query
from .org_outline import Location, OrgDocument, load_org

ELLIPSIS = "…"

# ANSI styles per status category (org-todo / org-done faces)
_STATUS_STYLES = {
    "todo": "\033[1;31m",
    "done": "\033[1;32m",
}
_RESET = "\033[0m"


@dataclass(frozen=True)
class TaskEntry:
    """One selectable task."""

    breadcrumb: str
    location: Location
    status: Optional[str] = None  # TODO keyword, if any
    status_category: Optional[str] = None  # "todo" | "done"
    status_label: str = ""  # rendered keyword, possibly colored

    @property
    def display(self) -> str:
        if self.status_label:
            return f"{self.status_label} {self.breadcrumb}"
        return self.breadcrumb


def format_breadcrumb(outline: Sequence[str], separator: str = "/", width: int = 80) -> str:
    """Join an outline path and keep it within `width` characters.

    Truncation drops text from the left so the headline itself stays visible.
    """
    text = separator.join(outline)
    if width <= 0 or len(text) <= width:
        return text
    if width <= len(ELLIPSIS):
        return text[-width:]
    return ELLIPSIS + text[-(width - len(ELLIPSIS)) :]


def format_status(keyword: Optional[str], category: Optional[str], color: bool = True) -> str:
    """Render a TODO keyword, styled by its category when color is on."""
    if not keyword:
        return ""
    style = _STATUS_STYLES.get(category or "")
    if color and style:
        return f"{style}{keyword}{_RESET}"
    return keyword


def entries_from_document(
    doc: OrgDocument,
    query: str,
    separator: str = "/",
    width: int = 80,
    color: bool = True,
) -> list[TaskEntry]:
    """Build TaskEntries for every headline in `doc` matching `query`."""
    matcher = compile_query(query)
    entries = []
    for headline in doc.headlines:
        if not matcher(headline):
            continue
        entries.append(
            TaskEntry(
                breadcrumb=format_breadcrumb(headline.outline_path, separator, width),
                location=Location.of(doc, headline),
                status=headline.todo,
                status_category=headline.todo_state,
                status_label=format_status(headline.todo, headline.todo_state, color),
            )
        )
    return entries


def scan(
    source: str,
    query: str,
    todo_keywords: Optional[Sequence[str]] = None,
    separator: str = "/",
    width: int = 80,
    color: bool = True,
) -> list[TaskEntry]:
    """Scan one task source.

    Args:
        source: Path to an org file
        query: Match query (see autoclock._query)
        todo_keywords: Keyword sequence used when the file declares none
        separator: Breadcrumb separator
        width: Maximum breadcrumb width
        color: Style status labels with ANSI colors

    Raises:
        OSError: If the source cannot be read
        ConfigurationError: If the query is invalid
    """
    doc = load_org(source, todo_keywords)
    return entries_from_document(doc, query, separator, width, color)
