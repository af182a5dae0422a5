"""APA 7 renderer for CSL-JSON records.

Accepts CSL-JSON mappings as well as Crossref ``message`` objects, which use
the same field names but carry titles as lists and may date a work through
``published-print`` / ``published-online`` instead of ``issued``.
"""

from collections.abc import Mapping
from typing import Any

_ARTICLE_TYPES = {
    "article",
    "article-journal",
    "article-magazine",
    "article-newspaper",
    "journal-article",
    "proceedings-article",
}

_DATE_FIELDS = ("issued", "published-print", "published-online", "published", "created")

_MAX_LISTED_AUTHORS = 20


# ── Public API ───────────────────────────────────────────────────────


def render(item: Any, mode: str = "bibliography") -> str:
    """Render one record as an APA reference entry or in-text citation."""
    if not isinstance(item, Mapping):
        raise TypeError(f"Expected a CSL-JSON mapping, got {type(item).__name__}")
    if mode == "bibliography":
        return render_reference(item)
    if mode == "citation":
        return render_in_text(item)
    raise ValueError(f"Unknown render mode: {mode}")


def render_reference(item: Mapping) -> str:
    """Reference-list entry: ``Author, A. (Year). Title. Source.``"""
    title = _title(item)
    year = _year(item)
    names = [_reference_name(n) for n in _names(item)]
    names = [n for n in names if n]

    if names:
        parts = [f"{_terminate(_join_reference_names(names))} ({year}).", _terminate(title)]
    else:
        # Unattributed works move the title into the author position
        parts = [f"{_terminate(title)} ({year})."]

    if item.get("type") in _ARTICLE_TYPES:
        source = _container(item)
        if source:
            parts.append(_terminate(source))
    else:
        publisher = _text(item.get("publisher"))
        if publisher:
            parts.append(_terminate(publisher))

    doi = _text(item.get("DOI"))
    if doi:
        parts.append(f"https://doi.org/{doi}")

    return " ".join(parts)


def render_in_text(item: Mapping) -> str:
    """Parenthetical in-text citation: ``(Family, Year)``."""
    year = _year(item)
    names = [_short_name(n) for n in _names(item)]
    names = [n for n in names if n]

    if not names:
        return f"({_title(item)}, {year})"
    if len(names) == 1:
        return f"({names[0]}, {year})"
    if len(names) == 2:
        return f"({names[0]} & {names[1]}, {year})"
    return f"({names[0]} et al., {year})"


# ── Field Access ─────────────────────────────────────────────────────


def _text(value: Any) -> str:
    """First element of a list field, or the scalar itself, as stripped text."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else ""
    if value is None:
        return ""
    return str(value).strip()


def _title(item: Mapping) -> str:
    title = _text(item.get("title"))
    if not title:
        raise ValueError("Record has no title")
    return title


def _names(item: Mapping) -> list[Mapping]:
    authors = item.get("author")
    if authors is None:
        return []
    if not isinstance(authors, (list, tuple)):
        raise TypeError(f"'author' must be a list, got {type(authors).__name__}")
    for entry in authors:
        if not isinstance(entry, Mapping):
            raise TypeError(f"Author entries must be mappings, got {type(entry).__name__}")
    return list(authors)


def _year(item: Mapping) -> str:
    for field in _DATE_FIELDS:
        date = item.get(field)
        if not isinstance(date, Mapping):
            continue
        parts = date.get("date-parts")
        if parts and parts[0] and parts[0][0] not in (None, ""):
            return str(int(parts[0][0]))
        literal = _text(date.get("literal") or date.get("raw"))
        if literal:
            return literal
    return "n.d."


def _container(item: Mapping) -> str:
    source = _text(item.get("container-title"))
    if not source:
        return ""
    volume = _text(item.get("volume"))
    issue = _text(item.get("issue"))
    page = _text(item.get("page"))
    if volume:
        source += f", {volume}"
        if issue:
            source += f"({issue})"
    elif issue:
        source += f", ({issue})"
    if page:
        source += f", {page}"
    return source


# ── Names ────────────────────────────────────────────────────────────


def _initials(given: str) -> str:
    """``"Jean-Paul Marie"`` -> ``"J.-P. M."``"""
    out = []
    for part in given.split():
        pieces = [p for p in part.split("-") if p]
        letters = [f"{p[0].upper()}." for p in pieces if p[0].isalpha()]
        if letters:
            out.append("-".join(letters))
    return " ".join(out)


def _reference_name(name: Mapping) -> str:
    literal = _text(name.get("literal") or name.get("name"))
    if literal:
        return literal
    family = _text(name.get("family"))
    particle = _text(name.get("non-dropping-particle"))
    if particle and family:
        family = f"{particle} {family}"
    initials = _initials(_text(name.get("given")))
    if family and initials:
        return f"{family}, {initials}"
    return family or initials


def _short_name(name: Mapping) -> str:
    literal = _text(name.get("literal") or name.get("name"))
    if literal:
        return literal
    return _text(name.get("family")) or _text(name.get("given"))


def _join_reference_names(names: list[str]) -> str:
    if len(names) == 1:
        return names[0]
    if len(names) > _MAX_LISTED_AUTHORS:
        return ", ".join(names[: _MAX_LISTED_AUTHORS - 1]) + f", . . . {names[-1]}"
    return ", ".join(names[:-1]) + f", & {names[-1]}"


def _terminate(text: str) -> str:
    return text if text.endswith((".", "?", "!")) else f"{text}."
