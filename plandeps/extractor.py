"""Dependency declarations in step text.

A step can declare the steps it depends on in four ways, all of which
may appear in the same file:

- a ``depends-on: 1, 2`` key in the leading header (front matter)
- bullets under a ``## Dependencies`` heading
- inline markers such as ``(depends on Step 3, 4)``
- ``Requires: Step 4, 5`` lines

Each syntax has its own matcher and the results are unioned. Extraction
is lenient: unrecognized syntax is ignored and nothing is raised. Numbers
that point at the step itself or outside the plan are kept here and
reported by :mod:`plandeps.validation`.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Set

from .models import Step

logger = logging.getLogger(__name__)

_NUMBER_PATTERN = re.compile(r"\d+")

_FRONTMATTER_PATTERN = re.compile(r"\A---[ \t]*\n(?P<body>.*?)\n---[ \t]*(?:\n|\Z)", re.DOTALL)
_HEADER_LINE_PATTERN = re.compile(r"^[A-Za-z][\w-]*[ \t]*:")
_DEPENDS_ON_PATTERN = re.compile(r"^[ \t]*depends-on[ \t]*:(?P<value>[^\n]*)$", re.IGNORECASE | re.MULTILINE)
_LIST_ITEM_PATTERN = re.compile(r"^[ \t]*-[ \t]+\S")

_SECTION_HEADING_PATTERN = re.compile(r"^##\s+Dependencies\s*$", re.IGNORECASE)
_ANY_HEADING_PATTERN = re.compile(r"^#")
_BULLET_REF_PATTERN = re.compile(
    r"^\s*[-*+]\s*(?P<refs>(?:Step\s*)?\d+(?:\s*,\s*(?:Step\s*)?\d+)*)",
    re.IGNORECASE,
)
_STEP_REF_PATTERN = re.compile(r"\bStep\s+(\d+)", re.IGNORECASE)

_INLINE_PATTERN = re.compile(
    r"\(\s*depends\s+on\s+(?P<refs>(?:Step\s*)?\d+(?:\s*,\s*(?:Step\s*)?\d+)*)\s*\)",
    re.IGNORECASE,
)

_REQUIRES_PATTERN = re.compile(r"\bRequires:\s*(?P<rest>[^\n]*)", re.IGNORECASE)


def _numbers(text: str) -> List[int]:
    return [int(n) for n in _NUMBER_PATTERN.findall(text)]


def _header_block(text: str) -> str:
    """Return the leading key/value header of a step file.

    A ``---`` fenced front-matter block wins; otherwise the run of
    ``key: value`` lines (and ``- item`` list lines under a key) at the
    very top of the file is used.
    """
    match = _FRONTMATTER_PATTERN.match(text)
    if match:
        return match.group("body")

    header_lines: List[str] = []
    for line in text.splitlines():
        if _HEADER_LINE_PATTERN.match(line):
            header_lines.append(line)
        elif header_lines and _LIST_ITEM_PATTERN.match(line):
            header_lines.append(line)
        else:
            break
    return "\n".join(header_lines)


def header_dependencies(text: str) -> List[int]:
    """Numbers declared by ``depends-on:`` in the leading header.

    Both ``depends-on: 1, 2`` and the YAML list form are read::

        depends-on:
          - 1
          - 2
    """
    found: List[int] = []
    lines = _header_block(text).splitlines()
    for index, line in enumerate(lines):
        match = _DEPENDS_ON_PATTERN.match(line)
        if not match:
            continue
        value = match.group("value")
        if value.strip():
            found.extend(_numbers(value))
            continue
        for item in lines[index + 1:]:
            if not _LIST_ITEM_PATTERN.match(item):
                break
            found.extend(_numbers(item))
    return sorted(set(found))


def section_dependencies(text: str) -> List[int]:
    """Numbers referenced under a ``## Dependencies`` heading.

    The section runs until the next heading line of any level.
    """
    section: List[str] = []
    in_section = False
    for line in text.splitlines():
        if _SECTION_HEADING_PATTERN.match(line):
            in_section = True
            continue
        if in_section and _ANY_HEADING_PATTERN.match(line):
            break
        if in_section:
            section.append(line)

    found: List[int] = []
    for line in section:
        bullet = _BULLET_REF_PATTERN.match(line)
        if bullet:
            found.extend(_numbers(bullet.group("refs")))
        found.extend(int(n) for n in _STEP_REF_PATTERN.findall(line))
    return sorted(set(found))


def inline_dependencies(text: str) -> List[int]:
    """Numbers inside ``(depends on Step X, Y)`` markers."""
    found: List[int] = []
    for match in _INLINE_PATTERN.finditer(text):
        found.extend(_numbers(match.group("refs")))
    return sorted(set(found))


def requires_dependencies(text: str) -> List[int]:
    """Every number following ``Requires:``.

    The list is read from the rest of the line, or from the next non-empty
    line when ``Requires:`` ends its line.
    """
    found: List[int] = []
    for match in _REQUIRES_PATTERN.finditer(text):
        found.extend(_numbers(match.group("rest")))
    return sorted(set(found))


MATCHERS: tuple[Callable[[str], List[int]], ...] = (
    header_dependencies,
    section_dependencies,
    inline_dependencies,
    requires_dependencies,
)


def extract_dependencies(text: str) -> List[int]:
    """Return the ascending, deduplicated step numbers ``text`` depends on."""
    if not isinstance(text, str) or not text:
        return []

    text = text.lstrip("\ufeff").replace("\r\n", "\n")
    dependencies: Set[int] = set()
    for matcher in MATCHERS:
        dependencies.update(matcher(text))
    return sorted(dependencies)


def extract_dependencies_from_file(path: Path | str) -> List[int]:
    """Extract dependencies from a step file; unreadable files have none."""
    try:
        content = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Could not read step file {path}: {e}")
        return []
    return extract_dependencies(content)


def parse_all_dependencies(steps: Iterable[Step]) -> Dict[int, List[int]]:
    """Map every step number to the dependencies declared in its text.

    Steps without loaded content are read from ``step.path`` when set.
    """
    dependencies: Dict[int, List[int]] = {}
    for step in steps:
        if step.content:
            dependencies[step.number] = extract_dependencies(step.content)
        elif step.path is not None:
            dependencies[step.number] = extract_dependencies_from_file(step.path)
        else:
            dependencies[step.number] = []
    return dependencies
