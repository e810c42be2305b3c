"""Member file read/write module.

Persists a MemberStore as comma-separated text, one member per line:

    Type,ID,Name,Age,BaseFee,PerformanceRating,AchievedGoal,TrainerFee
    REGULAR,<id>,<name>,<age>,<base_fee>,<rating>,<true|false>
    PT,<id>,<name>,<age>,<base_fee>,<rating>,<true|false>,<trainer_fee>

The first non-blank line is always treated as the header. Malformed lines
are logged with their line number and skipped; they never abort a load.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path

from pydantic import ValidationError

from billing import format_money
from member_store import MemberStore
from models import PT_TAG, Member, PTMember, RegularMember

logger = logging.getLogger(__name__)

HEADER = "Type,ID,Name,Age,BaseFee,PerformanceRating,AchievedGoal,TrainerFee"

# data fields after the variant tag
REGULAR_MIN_FIELDS = 6
PT_MIN_FIELDS = 7


class ParseError(ValueError):
    """One persisted line could not be turned into a member."""

    def __init__(self, reason: str, line_number: int | None = None, line: str = "") -> None:
        where = f"line {line_number}: " if line_number is not None else ""
        super().__init__(f"{where}{reason}")
        self.reason = reason
        self.line_number = line_number
        self.line = line


class RecordIOError(OSError):
    """The member file itself could not be read or written."""

    def __init__(self, action: str, path: Path, cause: Exception) -> None:
        super().__init__(f"Error {action} {path}: {cause}")
        self.path = path
        self.cause = cause


@dataclass
class LoadResult:
    """Outcome of ``load``."""

    path: Path
    loaded: int = 0
    errors: list[ParseError] = field(default_factory=list)
    created: bool = False


def _sanitize(text: str) -> str:
    return text.replace(",", ";").strip()


def to_line(member: Member) -> str:
    """Serialize one member without the trailing newline."""
    parts = [
        member.kind,
        _sanitize(member.id),
        _sanitize(member.name),
        str(member.age),
        format_money(member.base_fee),
        str(member.performance_rating),
        "true" if member.achieved_goal else "false",
    ]
    if member.kind == PT_TAG:
        parts.append(format_money(member.trainer_fee))
    return ",".join(parts)


def _parse_int(name: str, text: str) -> int:
    try:
        return int(text)
    except ValueError:
        raise ParseError(f"{name} is not an integer: {text!r}") from None


def _parse_decimal(name: str, text: str) -> Decimal:
    try:
        return Decimal(text)
    except InvalidOperation:
        raise ParseError(f"{name} is not a number: {text!r}") from None


def parse_line(line: str) -> Member:
    """Parse one data line. Raises ParseError on any problem."""
    parts = [p.strip() for p in line.split(",")]
    tag = parts[0].upper()
    is_pt = tag == PT_TAG
    required = PT_MIN_FIELDS if is_pt else REGULAR_MIN_FIELDS
    if len(parts) - 1 < required:
        raise ParseError(
            f"expected at least {required} fields after the type tag, got {len(parts) - 1}"
        )

    values = dict(
        id=parts[1],
        name=parts[2],
        age=_parse_int("age", parts[3]),
        base_fee=_parse_decimal("base_fee", parts[4]),
        performance_rating=_parse_int("performance_rating", parts[5]),
        achieved_goal=parts[6].lower() == "true",
    )
    try:
        if is_pt:
            return PTMember(trainer_fee=_parse_decimal("trainer_fee", parts[7]), **values)
        return RegularMember(**values)
    except ValidationError as e:
        reasons = "; ".join(err["msg"] for err in e.errors())
        raise ParseError(f"invalid member: {reasons}") from None


def ensure_file(path: Path) -> bool:
    """Create the member file containing only the header if it does not exist.

    Returns True when a new file was written.
    """
    if path.exists():
        return False
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(HEADER + "\n", encoding="utf-8")
    except OSError as e:
        raise RecordIOError("creating", path, e) from e
    logger.info("member file created: %s", path)
    return True


def save(store: MemberStore, path: Path) -> int:
    """Write every member in store order. Returns the number of members written.

    The file is written to a sibling temp file first and then moved into place.
    """
    lines = [HEADER] + [to_line(m) for m in store]
    tmp = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text("\n".join(lines) + "\n", encoding="utf-8")
        tmp.replace(path)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        raise RecordIOError("saving", path, e) from e
    count = len(lines) - 1
    logger.info("saved %d members to %s", count, path)
    return count


def load(store: MemberStore, path: Path) -> LoadResult:
    """Replace the store contents with the members in ``path``.

    A missing file is created with just the header. If the file cannot be
    read, RecordIOError is raised and the store is left untouched.
    """
    result = LoadResult(path=path)
    if not path.exists():
        logger.warning("member file not found, creating: %s", path)
        result.created = ensure_file(path)
        store.clear()
        return result

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise RecordIOError("reading", path, e) from e

    store.clear()
    header_seen = False
    for idx, raw in enumerate(text.splitlines(), 1):
        line = raw.strip()
        if not line:
            continue
        if not header_seen:
            header_seen = True
            continue
        try:
            member = parse_line(line)
            if store.get_by_id(member.id) is not None:
                raise ParseError(f"duplicate member id {member.id!r}")
        except ParseError as e:
            err = ParseError(e.reason, line_number=idx, line=raw)
            result.errors.append(err)
            logger.warning("load: skip invalid line %d in %s: %s", idx, path, e.reason)
            continue
        store.add(member)
        result.loaded += 1

    logger.info("loaded %d members from %s (%d skipped)", result.loaded, path, len(result.errors))
    return result
