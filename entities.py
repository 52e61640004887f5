"""
Data models for the extraordinary duty roster.
Operations, personnel, month rosters and ordinary-duty reference data.
"""

import calendar
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set


# Maximum number of slot occurrences a person may hold per month
# across all capped operations.
MONTHLY_ASSIGNMENT_CAP = 12

# Rank tokens from most to least senior. Used for sort order only.
RANK_ORDER = ["CAP", "TEN", "SUB TEN", "1º SGT", "2º SGT", "3º SGT", "CB", "SD"]

# Officer ranks (everything else is a "Praça")
OFFICER_RANKS = {"CAP", "TEN"}

# Group used for personnel without a known organizational group
UNGROUPED = "OUTROS"

# Display order of organizational groups
GROUP_ORDER = ["EXPEDIENTE", "ALFA", "BRAVO", "CHARLIE", UNGROUPED]


class OperationCode(Enum):
    """Extraordinary operation codes"""
    PMF = "pmf"  # Polícia Mais Forte
    ESCOLA_SEGURA = "escolaSegura"  # Escola Segura


@dataclass
class Operation:
    """Represents an extraordinary duty program with a fixed number of daily slots"""
    code: str
    name: str
    report_label: str  # Label used in conflict reports, e.g. "PMF"
    slot_count: int
    is_capped: bool = True  # Counts towards MONTHLY_ASSIGNMENT_CAP
    weekdays_only: bool = False  # School operation does not run on weekends

    def works_on_date(self, d: date) -> bool:
        """Check if this operation has service on the given date"""
        if self.weekdays_only:
            return d.weekday() < 5
        return True

    def empty_row(self) -> List[Optional[str]]:
        return [None] * self.slot_count


STANDARD_OPERATIONS = [
    Operation(OperationCode.PMF.value, "Polícia Mais Forte", "PMF", 3),
    Operation(OperationCode.ESCOLA_SEGURA.value, "Escola Segura", "ESCOLA SEGURA", 2, weekdays_only=True),
]


def get_operation_by_code(code: str) -> Optional[Operation]:
    """Get operation by code"""
    for operation in STANDARD_OPERATIONS:
        if operation.code == code:
            return operation
    return None


def require_operation(code: str) -> Operation:
    """Get operation by code, raising ValueError for unknown codes"""
    operation = get_operation_by_code(code)
    if operation is None:
        valid = ", ".join(op.code for op in STANDARD_OPERATIONS)
        raise ValueError(f"Unknown operation '{code}' (expected one of: {valid})")
    return operation


@dataclass(frozen=True, order=True)
class MonthKey:
    """A calendar month (month is 1-based)"""
    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {self.month}")

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    def days(self) -> range:
        return range(1, self.days_in_month + 1)

    def date_of(self, day: int) -> date:
        self.check_day(day)
        return date(self.year, self.month, day)

    def check_day(self, day: int):
        if not 1 <= day <= self.days_in_month:
            raise ValueError(f"Day {day} is outside {self} (1..{self.days_in_month})")

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class Person:
    """Represents a member of the personnel directory"""
    name: str  # Unique display name, e.g. "1º SGT PM OLIMAR"
    rank: Optional[str] = None  # One of RANK_ORDER
    group: str = UNGROUPED  # One of GROUP_ORDER

    @property
    def rank_index(self) -> int:
        if self.rank in RANK_ORDER:
            return RANK_ORDER.index(self.rank)
        return len(RANK_ORDER)

    @property
    def is_officer(self) -> bool:
        return self.rank in OFFICER_RANKS

    @property
    def category(self) -> str:
        return "Oficial" if self.is_officer else "Praça"


class PersonnelDirectory:
    """
    Explicit Person -> {rank, group} lookup table.

    Rank and group are reference data maintained alongside the names;
    they are never inferred from the display name itself.
    """

    def __init__(self, persons: Iterable[Person] = ()):
        self._persons: Dict[str, Person] = {}
        for person in persons:
            self.add(person)

    def add(self, person: Person):
        if person.name in self._persons:
            raise ValueError(f"Duplicate person in directory: {person.name}")
        self._persons[person.name] = person

    def get(self, name: str) -> Person:
        """Look up a person; unknown names get no rank and the UNGROUPED group"""
        return self._persons.get(name) or Person(name)

    def __contains__(self, name: str) -> bool:
        return name in self._persons

    def __len__(self) -> int:
        return len(self._persons)

    def __iter__(self):
        return iter(self._persons.values())

    def names(self) -> List[str]:
        return list(self._persons)

    def sort_by_rank(self, names: Iterable[str]) -> List[str]:
        """Sort names by rank seniority; equal ranks keep their input order"""
        return sorted(names, key=lambda n: self.get(n).rank_index)


@dataclass
class MonthRoster:
    """
    One operation's assignments for one month.

    Maps day-of-month to a fixed-width row of optional person names.
    Days without assignments may be absent from `days`.
    """
    operation: str
    month: MonthKey
    days: Dict[int, List[Optional[str]]] = field(default_factory=dict)

    def __post_init__(self):
        op = require_operation(self.operation)
        normalized = {}
        for day, row in self.days.items():
            day = int(day)
            self.month.check_day(day)
            normalized[day] = self._normalize_row(op, day, row)
        self.days = normalized

    @staticmethod
    def _normalize_row(op: Operation, day: int, row: Sequence[Optional[str]]) -> List[Optional[str]]:
        if not isinstance(row, (list, tuple)) or not all(name is None or isinstance(name, str) for name in row):
            raise ValueError(f"Day {day} of {op.code} must be a list of names or nulls, got {row!r}")
        if len(row) > op.slot_count:
            raise ValueError(
                f"Day {day} of {op.code} has {len(row)} slots (maximum {op.slot_count})"
            )
        cleaned = [name if name else None for name in row]
        return cleaned + [None] * (op.slot_count - len(cleaned))

    @property
    def slot_count(self) -> int:
        return require_operation(self.operation).slot_count

    def row(self, day: int) -> List[Optional[str]]:
        """Copy of the day's row (all empty when the day has no assignments)"""
        self.month.check_day(day)
        if day in self.days:
            return list(self.days[day])
        return [None] * self.slot_count

    def set_row(self, day: int, row: Sequence[Optional[str]]):
        self.month.check_day(day)
        self.days[day] = self._normalize_row(require_operation(self.operation), day, row)

    def set_slot(self, day: int, position: int, person: Optional[str]):
        """Replace the occupant of one slot (None clears it)"""
        if not 0 <= position < self.slot_count:
            raise ValueError(
                f"Slot position {position} is outside {self.operation} row (0..{self.slot_count - 1})"
            )
        row = self.row(day)
        row[position] = person or None
        self.days[day] = row

    def occupants(self, day: int) -> List[str]:
        return [name for name in self.days.get(day, []) if name]

    def without_day(self, day: int) -> "MonthRoster":
        """Copy of this roster with one day's row left out"""
        return MonthRoster(
            self.operation,
            self.month,
            {d: list(row) for d, row in self.days.items() if d != day},
        )

    def additions_over(self, base: "MonthRoster") -> "MonthRoster":
        """
        Slots of this roster whose occupant differs from `base`.

        Used to turn a locally edited copy of a confirmed roster into the
        set of pending placements, so that unchanged slots are not counted twice.
        """
        added = {}
        for day, row in self.days.items():
            base_row = base.row(day) if base is not None else [None] * len(row)
            diff = [name if name and name != base_row[i] else None for i, name in enumerate(row)]
            if any(diff):
                added[day] = diff
        return MonthRoster(self.operation, self.month, added)

    def copy(self) -> "MonthRoster":
        return MonthRoster(self.operation, self.month, {d: list(row) for d, row in self.days.items()})

    def total_assignments(self) -> int:
        return sum(len(self.occupants(day)) for day in self.days)

    def to_dict(self) -> Dict[str, List[Optional[str]]]:
        return {str(day): list(row) for day, row in sorted(self.days.items())}

    @staticmethod
    def from_dict(operation: str, month: MonthKey, data: Optional[Dict]) -> "MonthRoster":
        if data is not None and not isinstance(data, dict):
            raise ValueError(f"{operation} roster must map days to rows, got {type(data).__name__}")
        return MonthRoster(operation, month, {int(day): row for day, row in (data or {}).items()})


@dataclass
class OperationSet:
    """All operation rosters for one month (the combined schedule)"""
    month: MonthKey
    rosters: Dict[str, MonthRoster] = field(default_factory=dict)

    def roster(self, operation: str) -> MonthRoster:
        """The roster for an operation, created empty when absent"""
        require_operation(operation)
        if operation not in self.rosters:
            self.rosters[operation] = MonthRoster(operation, self.month)
        return self.rosters[operation]

    def all_rosters(self) -> List[MonthRoster]:
        return [self.roster(op.code) for op in STANDARD_OPERATIONS]

    def to_dict(self) -> Dict[str, Dict[str, List[Optional[str]]]]:
        return {roster.operation: roster.to_dict() for roster in self.all_rosters()}


@dataclass
class OrdinaryDutyCalendar:
    """Which ordinary-duty group is on service on each day of one month"""
    month: MonthKey
    groups_by_day: Dict[int, str] = field(default_factory=dict)

    def group_for(self, day: int) -> Optional[str]:
        return self.groups_by_day.get(day)

    def days(self) -> List[int]:
        return sorted(self.groups_by_day)

    def missing_days(self) -> List[int]:
        return [d for d in self.month.days() if d not in self.groups_by_day]


class GroupRoster:
    """Static group -> member names mapping"""

    def __init__(self, members_by_group: Optional[Dict[str, Iterable[str]]] = None):
        self._members: Dict[str, FrozenSet[str]] = {
            group: frozenset(names) for group, names in (members_by_group or {}).items()
        }

    @staticmethod
    def from_directory(directory: PersonnelDirectory) -> "GroupRoster":
        members: Dict[str, Set[str]] = {}
        for person in directory:
            members.setdefault(person.group, set()).add(person.name)
        return GroupRoster(members)

    def members(self, group: str) -> FrozenSet[str]:
        return self._members.get(group, frozenset())

    def groups_of(self, name: str) -> List[str]:
        return [group for group, names in self._members.items() if name in names]

    def group_of(self, name: str) -> Optional[str]:
        """The person's only group; None when unknown or listed in several groups"""
        groups = self.groups_of(name)
        return groups[0] if len(groups) == 1 else None

    def multi_group_members(self) -> Dict[str, List[str]]:
        result = {}
        for group in self._members:
            for name in self._members[group]:
                groups = self.groups_of(name)
                if len(groups) > 1:
                    result[name] = sorted(groups)
        return result

    def __bool__(self) -> bool:
        return bool(self._members)


@dataclass(frozen=True)
class ConflictRecord:
    """A person on ordinary duty who is also on an extraordinary roster the same day"""
    day: int
    person: str
    group: str
    operation: str  # Operation code

    @property
    def operation_label(self) -> str:
        op = get_operation_by_code(self.operation)
        return op.report_label if op else self.operation

    def to_dict(self) -> Dict:
        return {
            "day": self.day,
            "person": self.person,
            "ordinaryGroup": self.group,
            "operation": self.operation,
            "operationLabel": self.operation_label,
        }


# Reasons a placement can be refused
LIMIT_EXCEEDED = "LIMIT_EXCEEDED"
DUPLICATE_IN_DAY = "DUPLICATE_IN_DAY"
NO_SERVICE_DAY = "NO_SERVICE_DAY"


@dataclass(frozen=True)
class PlacementResult:
    """Outcome of a single-slot placement request"""
    authorized: bool
    person: Optional[str] = None
    count: Optional[int] = None  # Occurrences counted before the placement
    reason: Optional[str] = None

    @staticmethod
    def ok(person: Optional[str] = None, count: Optional[int] = None) -> "PlacementResult":
        return PlacementResult(True, person, count)

    @staticmethod
    def rejected(person: str, reason: str, count: Optional[int] = None) -> "PlacementResult":
        return PlacementResult(False, person, count, reason)

    @property
    def message(self) -> str:
        if self.authorized:
            return "OK"
        if self.reason == LIMIT_EXCEEDED:
            return (
                f"{self.person} already has {self.count} assignments this month "
                f"and is blocked from new ones (limit {MONTHLY_ASSIGNMENT_CAP})"
            )
        if self.reason == DUPLICATE_IN_DAY:
            return f"{self.person} is already assigned on this day"
        if self.reason == NO_SERVICE_DAY:
            return "The operation has no service on this day"
        return f"Placement of {self.person} rejected"

    def to_dict(self) -> Dict:
        return {
            "authorized": self.authorized,
            "officer": self.person,
            "count": self.count,
            "reason": self.reason,
            "message": self.message,
        }
