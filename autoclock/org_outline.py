"""
Org Outline: read-only parsing of org task files.

A task source is an org file. Each headline becomes a Headline carrying
its level, TODO keyword, priority, own and inherited tags, and the titles
of its ancestors. Locations point back at one headline and survive edits
that shift line numbers: resolve() re-reads the file and falls back to the
outline path when the recorded line no longer matches.

Keyword declarations honoured:
- #+TODO: / #+SEQ_TODO: / #+TYP_TODO:  (fast-access keys like "TODO(t)" stripped)
- #+FILETAGS:  (inherited by every headline)
- #+CATEGORY:  (defaults to the file stem)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .errors import LocationNotFoundError

DEFAULT_TODO_KEYWORDS = ("TODO", "NEXT", "WAITING", "|", "DONE", "CANCELLED")

_HEADLINE_RE = re.compile(r"^(\*+)[ \t]+(.*?)[ \t]*$")
_TAGS_RE = re.compile(r"[ \t]+(:[\w@#%:]+:)$")
_PRIORITY_RE = re.compile(r"^\[#([A-Za-z0-9])\][ \t]*")
_KEYWORD_LINE_RE = re.compile(r"^#\+(SEQ_TODO|TYP_TODO|TODO|FILETAGS|CATEGORY):[ \t]*(.*)$", re.IGNORECASE)
_FAST_KEY_RE = re.compile(r"\(.*\)$")


@dataclass(frozen=True)
class TodoKeywords:
    """Active ("todo") and finished ("done") keyword sets for one file."""

    todo: tuple = ()
    done: tuple = ()

    @property
    def all(self) -> tuple:
        return self.todo + self.done

    def state_of(self, keyword: Optional[str]) -> Optional[str]:
        """Category of a keyword: "todo", "done", or None for plain headlines."""
        if keyword is None:
            return None
        if keyword in self.done:
            return "done"
        if keyword in self.todo:
            return "todo"
        return None


def parse_keyword_sequence(words: Iterable[str]) -> TodoKeywords:
    """Split a keyword sequence like ["TODO", "NEXT", "|", "DONE"].

    Without a "|" separator the last keyword is the only done state,
    as in org.
    """
    cleaned = [_FAST_KEY_RE.sub("", w) for w in words if w]
    if not cleaned:
        return TodoKeywords()
    if "|" in cleaned:
        idx = cleaned.index("|")
        todo, done = cleaned[:idx], cleaned[idx + 1 :]
    else:
        todo, done = cleaned[:-1], cleaned[-1:]
    return TodoKeywords(todo=tuple(todo), done=tuple(done))


@dataclass(frozen=True)
class Headline:
    """One outline entry."""

    level: int
    title: str
    lineno: int  # 1-based
    todo: Optional[str] = None
    todo_state: Optional[str] = None  # "todo" | "done" | None
    priority: Optional[str] = None
    tags: tuple = ()
    all_tags: tuple = ()  # own + inherited + file tags
    ancestors: tuple = ()  # titles of enclosing headlines, outermost first
    category: str = ""

    @property
    def outline_path(self) -> tuple:
        return self.ancestors + (self.title,)


@dataclass
class OrgDocument:
    """Parsed org file. Lines are kept so writers can patch entries in place."""

    path: str
    lines: list = field(default_factory=list)
    headlines: list = field(default_factory=list)
    keywords: TodoKeywords = field(default_factory=TodoKeywords)
    category: str = ""

    def headline_at(self, lineno: int) -> Optional[Headline]:
        for headline in self.headlines:
            if headline.lineno == lineno:
                return headline
        return None

    def find_by_outline(self, outline: Sequence[str]) -> Optional[Headline]:
        target = tuple(outline)
        for headline in self.headlines:
            if headline.outline_path == target:
                return headline
        return None

    def entry_end(self, headline: Headline) -> int:
        """1-based line number of the first line after the entry's own body."""
        for other in self.headlines:
            if other.lineno > headline.lineno:
                return other.lineno
        return len(self.lines) + 1


# =============================================================================
# PARSING
# =============================================================================


def _split_headline(
    text: str, keywords: TodoKeywords
) -> tuple[Optional[str], Optional[str], str, tuple]:
    """Split headline text into (keyword, priority, title, tags)."""
    tags: tuple = ()
    match = _TAGS_RE.search(" " + text)
    if match:
        tags = tuple(t for t in match.group(1).split(":") if t)
        text = (" " + text)[: match.start()].strip()

    keyword = None
    first, _, rest = text.partition(" ")
    if first in keywords.all:
        keyword = first
        text = rest.strip()

    priority = None
    prio_match = _PRIORITY_RE.match(text)
    if prio_match:
        priority = prio_match.group(1)
        text = text[prio_match.end() :]

    return keyword, priority, text.strip(), tags


def _scan_file_keywords(lines: Sequence[str]) -> tuple[list, list, Optional[str]]:
    """Collect in-file keyword sequences, file tags and category."""
    sequences: list = []
    filetags: list = []
    category = None
    for line in lines:
        match = _KEYWORD_LINE_RE.match(line)
        if not match:
            continue
        name, value = match.group(1).upper(), match.group(2).strip()
        if name in ("TODO", "SEQ_TODO", "TYP_TODO"):
            sequences.append(value.split())
        elif name == "FILETAGS":
            filetags.extend(t for t in re.split(r"[:\s]+", value) if t)
        elif name == "CATEGORY" and value:
            category = value
    return sequences, filetags, category


def _resolve_keywords(
    sequences: list, default: Optional[Sequence[str]]
) -> TodoKeywords:
    if not sequences:
        return parse_keyword_sequence(default or DEFAULT_TODO_KEYWORDS)
    todo: list = []
    done: list = []
    for words in sequences:
        parsed = parse_keyword_sequence(words)
        todo.extend(k for k in parsed.todo if k not in todo)
        done.extend(k for k in parsed.done if k not in done)
    return TodoKeywords(todo=tuple(todo), done=tuple(done))


def parse_org(
    text: str,
    path: str = "",
    todo_keywords: Optional[Sequence[str]] = None,
) -> OrgDocument:
    """Parse org text into an OrgDocument.

    Args:
        text: File contents
        path: Source path, used for the default category and Locations
        todo_keywords: Keyword sequence used when the file declares none
    """
    lines = text.splitlines()
    sequences, filetags, category = _scan_file_keywords(lines)
    keywords = _resolve_keywords(sequences, todo_keywords)
    category = category or (Path(path).stem if path else "")

    headlines = []
    # Stack of (level, title, tags) for the enclosing headlines
    stack: list = []
    for idx, line in enumerate(lines):
        match = _HEADLINE_RE.match(line)
        if not match:
            continue
        level = len(match.group(1))
        keyword, priority, title, tags = _split_headline(match.group(2), keywords)

        while stack and stack[-1][0] >= level:
            stack.pop()

        inherited: list = list(filetags)
        for _, _, parent_tags in stack:
            inherited.extend(parent_tags)
        all_tags = tuple(dict.fromkeys(inherited + list(tags)))

        headlines.append(
            Headline(
                level=level,
                title=title,
                lineno=idx + 1,
                todo=keyword,
                todo_state=keywords.state_of(keyword),
                priority=priority,
                tags=tags,
                all_tags=all_tags,
                ancestors=tuple(t for _, t, _ in stack),
                category=category,
            )
        )
        stack.append((level, title, tags))

    return OrgDocument(
        path=path,
        lines=lines,
        headlines=headlines,
        keywords=keywords,
        category=category,
    )


def load_org(path: str, todo_keywords: Optional[Sequence[str]] = None) -> OrgDocument:
    """Read and parse an org file (read-only).

    Raises:
        OSError: If the file cannot be read or is not UTF-8 text
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise OSError(f"{path}: not UTF-8 text ({e.reason} at byte {e.start})") from e
    return parse_org(text, str(path), todo_keywords)


# =============================================================================
# LOCATIONS
# =============================================================================


@dataclass(frozen=True)
class Location:
    """Resolvable pointer to one headline in a task source."""

    source: str
    lineno: int
    outline: tuple

    def __str__(self) -> str:
        return f"{self.source}:{self.lineno} ({'/'.join(self.outline)})"

    @classmethod
    def of(cls, doc: OrgDocument, headline: Headline) -> "Location":
        return cls(source=doc.path, lineno=headline.lineno, outline=headline.outline_path)

    def resolve_in(self, doc: OrgDocument) -> Headline:
        """Find this location's headline in an already parsed document."""
        headline = doc.headline_at(self.lineno)
        if headline is not None and headline.outline_path == self.outline:
            return headline

        # Lines shifted since the scan; fall back to the outline path
        headline = doc.find_by_outline(self.outline)
        if headline is None:
            raise LocationNotFoundError(self)
        return headline

    def resolve(self, todo_keywords: Optional[Sequence[str]] = None) -> Headline:
        """Re-read the source and return the headline this location points at."""
        try:
            doc = load_org(self.source, todo_keywords)
        except OSError as e:
            raise LocationNotFoundError(self, f"cannot read source: {e}") from e
        return self.resolve_in(doc)
