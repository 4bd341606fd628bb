"""Loading plan directories into :class:`Plan` objects.

A plan directory looks like::

    my-plan/
        SUMMARY.md          # optional, first heading is the plan name
        STATUS.md           # optional, status table per step
        plan/
            01-setup.md
            02-build.md

Step files may also sit directly in the plan directory when there is no
``plan/`` subdirectory.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

from .extractor import extract_dependencies
from .models import Plan, Step
from .plandeps_logging import log_plan_loaded

logger = logging.getLogger(__name__)

STEP_FILE_PATTERN = re.compile(r"^(\d{2})-(.+)\.md$")
STEP_DIR_NAME = "plan"
SUMMARY_FILE = "SUMMARY.md"
STATUS_FILE = "STATUS.md"

# Emoji order matters: the first one found in a cell wins
STATUS_EMOJI: Dict[str, str] = {
    "✅": "completed",
    "🔄": "in_progress",
    "❌": "failed",
    "⏸️": "blocked",
    "⏸": "blocked",
    "⏭️": "skipped",
    "⏭": "skipped",
    "⬜": "pending",
}

_TITLE_PATTERN = re.compile(r"^#\s+(.+)$", re.MULTILINE)
_STATUS_ROW_PATTERN = re.compile(r"^\|\s*(\d{1,3})\s*\|[^|]+\|([^|]+)\|")


def format_code(code: str) -> str:
    """Turn a slug such as ``api-design`` into ``Api Design``."""
    return " ".join(part.capitalize() for part in re.split(r"[-_]+", code) if part)


def extract_title(markdown: str) -> Optional[str]:
    match = _TITLE_PATTERN.search(markdown)
    return match.group(1).strip() if match else None


def find_status(cell: str) -> Optional[str]:
    for emoji, status in STATUS_EMOJI.items():
        if emoji in cell:
            return status
    return None


def discover_step_files(directory: Path) -> List[Path]:
    """Step files in ``directory`` sorted by step number."""
    if not directory.is_dir():
        return []
    step_files = [
        path for path in directory.iterdir()
        if path.is_file() and STEP_FILE_PATTERN.match(path.name)
    ]
    return sorted(step_files, key=lambda p: int(STEP_FILE_PATTERN.match(p.name).group(1)))


def parse_status_document(content: str) -> Dict[int, str]:
    """Read step statuses from STATUS.md rows like ``| 01 | Setup | ✅ |``."""
    statuses: Dict[int, str] = {}
    for line in content.splitlines():
        match = _STATUS_ROW_PATTERN.match(line)
        if not match:
            continue
        status = find_status(match.group(2))
        if status:
            statuses[int(match.group(1))] = status
    return statuses


def load_step(path: Path) -> Optional[Step]:
    """Load one step file; ``None`` when the name is not a step file name.

    A step file that cannot be read stays in the plan with no content and
    no dependencies.
    """
    match = STEP_FILE_PATTERN.match(path.name)
    if not match:
        return None

    number, code = int(match.group(1)), match.group(2)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read step file {path}: {e}")
        content = ""

    return Step(
        number=number,
        content=content,
        code=code,
        filename=path.name,
        title=extract_title(content) or format_code(code),
        path=path,
        dependencies=extract_dependencies(content),
    )


def load_plan(path: Path | str, *, parse_status: bool = True) -> Plan:
    """Load the plan at ``path``.

    Raises ``ValueError`` when the path is missing or not a directory.
    """
    plan_path = Path(path).expanduser().resolve()
    if not plan_path.exists():
        raise ValueError(f"Plan path does not exist: {plan_path}")
    if not plan_path.is_dir():
        raise ValueError(f"Plan path is not a directory: {plan_path}")

    step_dir = plan_path / STEP_DIR_NAME
    step_files = discover_step_files(step_dir) or discover_step_files(plan_path)

    steps: List[Step] = []
    for step_file in step_files:
        step = load_step(step_file)
        if step is not None:
            steps.append(step)

    status_path = plan_path / STATUS_FILE
    if parse_status and status_path.is_file():
        try:
            statuses = parse_status_document(status_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read {status_path}: {e}")
            statuses = {}
        for step in steps:
            step.status = statuses.get(step.number, step.status)

    code = plan_path.name
    name = format_code(code)
    summary_path = plan_path / SUMMARY_FILE
    if summary_path.is_file():
        try:
            name = extract_title(summary_path.read_text(encoding="utf-8")) or name
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read {summary_path}: {e}")

    log_plan_loaded(code, len(steps), path=str(plan_path))
    return Plan(code=code, name=name, path=plan_path, steps=steps)
