"""
Match query compiler: a subset of org's tags/todo match syntax.

    query     := tagpart [ "/" todopart ]
    tagpart   := group ( "|" group )*
    group     := term ( ["&"] term )*
    term      := ["+" | "-"] ( tag | "{" regex "}" | PROP op value )
    todopart  := ["!"] tgroup ( "|" tgroup )*
    tgroup    := ( ["+" | "-"] KEYWORD )+

Examples:
    "/!"              any not-done TODO keyword
    "/-DONE"          everything except DONE headlines
    "work-someday"    tagged work, not tagged someday
    "+work/NEXT|TODO" work items in NEXT or TODO
    'TODO<>"DONE"'    same as "/-DONE"
    "LEVEL=2"         second-level headlines only

Properties understood: TODO, LEVEL, PRIORITY, CATEGORY, ITEM.
"""

from __future__ import annotations

import re
from typing import Callable

from .errors import ConfigurationError
from .org_outline import Headline

Matcher = Callable[[Headline], bool]

_TERM_RE = re.compile(
    r"""
    (?P<sign>[+-]?)
    (?:
        \{(?P<tagre>[^}]+)\}
      | (?P<prop>[A-Za-z_][\w-]*)(?P<op><>|<=|>=|!=|=|<|>)
        (?P<value>"[^"]*"|\{[^}]*\}|[-+]?\d+(?:\.\d+)?)
      | (?P<tag>[\w@#%]+)
    )
    """,
    re.VERBOSE,
)
_TODO_TERM_RE = re.compile(r"(?P<sign>[+-]?)(?P<kw>[\w@#%]+)")

_PROPERTY_GETTERS = {
    "TODO": lambda h: h.todo or "",
    "LEVEL": lambda h: h.level,
    "PRIORITY": lambda h: h.priority or "",
    "CATEGORY": lambda h: h.category,
    "ITEM": lambda h: h.title,
}


def _compile_regex(pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigurationError(f"invalid regex {{{pattern}}} in match query: {e}") from e


def _compare(actual, op: str, raw) -> bool:
    """Compare a property value; `raw` is a quoted string, a number or a compiled regex."""
    if isinstance(raw, re.Pattern):
        found = raw.search(str(actual)) is not None
        return found if op == "=" else not found

    if raw.startswith('"'):
        expected = raw[1:-1]
        actual = str(actual)
    else:
        try:
            expected = float(raw)
            actual = float(actual)
        except (TypeError, ValueError):
            return False

    if op == "=":
        return actual == expected
    if op in ("<>", "!="):
        return actual != expected
    if op == "<":
        return actual < expected
    if op == ">":
        return actual > expected
    if op == "<=":
        return actual <= expected
    if op == ">=":
        return actual >= expected
    return False


def _term_matcher(match: re.Match) -> Matcher:
    negate = match.group("sign") == "-"

    if match.group("tagre") is not None:
        pattern = _compile_regex(match.group("tagre"))

        def test(h: Headline) -> bool:
            return any(pattern.search(t) for t in h.all_tags)

    elif match.group("prop") is not None:
        name = match.group("prop").upper()
        getter = _PROPERTY_GETTERS.get(name)
        if getter is None:
            raise ConfigurationError(f"unsupported property in match query: {name}")
        op, value = match.group("op"), match.group("value")
        if value.startswith("{"):
            value = _compile_regex(value[1:-1])

        def test(h: Headline) -> bool:
            return _compare(getter(h), op, value)

    else:
        tag = match.group("tag")

        def test(h: Headline) -> bool:
            return tag in h.all_tags

    if negate:
        return lambda h: not test(h)
    return test


def _parse_group(text: str, term_re: re.Pattern, make: Callable, query: str) -> list:
    matchers = []
    pos = 0
    while pos < len(text):
        if text[pos] in "& \t":
            pos += 1
            continue
        match = term_re.match(text, pos)
        if not match or match.end() == pos:
            raise ConfigurationError(f"invalid match query: {query!r}")
        matchers.append(make(match))
        pos = match.end()
    return matchers


def _todo_term_matcher(match: re.Match) -> Matcher:
    keyword = match.group("kw")
    if match.group("sign") == "-":
        return lambda h: h.todo != keyword
    return lambda h: h.todo == keyword


def _any_of(groups: list) -> Matcher:
    """OR of AND-groups; an empty part matches everything."""
    groups = [g for g in groups if g]
    if not groups:
        return lambda h: True
    return lambda h: any(all(m(h) for m in group) for group in groups)


def compile_query(query: str) -> Matcher:
    """Compile a match query into a predicate over headlines.

    Raises:
        ConfigurationError: If the query cannot be parsed
    """
    query = (query or "").strip()
    tag_part, slash, todo_part = query.partition("/")

    tag_groups = [
        _parse_group(g, _TERM_RE, _term_matcher, query) for g in tag_part.split("|")
    ]
    tag_matcher = _any_of(tag_groups)

    if not slash:
        return tag_matcher

    todo_only = todo_part.startswith("!")
    if todo_only:
        todo_part = todo_part[1:]
    todo_groups = [
        _parse_group(g, _TODO_TERM_RE, _todo_term_matcher, query)
        for g in todo_part.split("|")
    ]
    todo_matcher = _any_of(todo_groups)

    def matcher(h: Headline) -> bool:
        if todo_only and h.todo_state != "todo":
            return False
        return tag_matcher(h) and todo_matcher(h)

    return matcher
