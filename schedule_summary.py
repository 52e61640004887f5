"""
Summaries and statistics of a month's extraordinary rosters.
Per-person totals, per-group distribution and per-operation occupancy.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from entities import (
    GROUP_ORDER, MONTHLY_ASSIGNMENT_CAP, STANDARD_OPERATIONS, UNGROUPED,
    MonthRoster, OperationSet, PersonnelDirectory, get_operation_by_code
)

# Persons with this many assignments or more are reported as close to the limit
NEAR_LIMIT_THRESHOLD = 10

# (label, lower bound, upper bound inclusive) for the distribution chart
DISTRIBUTION_BUCKETS = [
    ("1-3", 1, 3),
    ("4-6", 4, 6),
    ("7-9", 7, 9),
    ("10-11", 10, MONTHLY_ASSIGNMENT_CAP - 1),
    (f"{MONTHLY_ASSIGNMENT_CAP}+", MONTHLY_ASSIGNMENT_CAP, None),
]


@dataclass
class PersonSummary:
    name: str
    days: List[int] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.days)

    def to_dict(self) -> Dict:
        return {"name": self.name, "days": self.days, "total": self.total}


@dataclass
class GroupSummary:
    group: str
    total: int = 0
    persons_by_day: Dict[int, List[str]] = field(default_factory=dict)

    @property
    def days(self) -> List[int]:
        return sorted(self.persons_by_day)

    def days_by_person(self) -> Dict[str, List[int]]:
        """Each person's days, persons sorted by name"""
        result: Dict[str, List[int]] = {}
        for day in self.days:
            for name in self.persons_by_day[day]:
                days = result.setdefault(name, [])
                if day not in days:
                    days.append(day)
        return dict(sorted(result.items()))

    def to_dict(self) -> Dict:
        return {
            "group": self.group,
            "days": self.days,
            "total": self.total,
            "personsByDay": {str(d): names for d, names in sorted(self.persons_by_day.items())},
        }


def summarize_by_person(rosters: Iterable[MonthRoster]) -> List[PersonSummary]:
    """
    Distinct days worked per person across the given rosters.

    Sorted by total descending, then by name.
    """
    days_by_person: Dict[str, set] = {}
    for roster in rosters:
        for day in roster.days:
            for name in roster.occupants(day):
                days_by_person.setdefault(name, set()).add(day)

    summaries = [PersonSummary(name, sorted(days)) for name, days in days_by_person.items()]
    summaries.sort(key=lambda s: (-s.total, s.name))
    return summaries


def summarize_by_group(roster: MonthRoster, directory: PersonnelDirectory) -> Dict[str, GroupSummary]:
    """
    Extraordinary assignments of one roster split by the persons' groups.

    Groups follow GROUP_ORDER; the ungrouped bucket is dropped when empty.
    """
    summaries = {group: GroupSummary(group) for group in GROUP_ORDER}
    for day in sorted(roster.days):
        for name in roster.occupants(day):
            group = directory.get(name).group
            summary = summaries.setdefault(group, GroupSummary(group))
            summary.total += 1
            summary.persons_by_day.setdefault(day, []).append(name)

    if summaries[UNGROUPED].total == 0:
        del summaries[UNGROUPED]
    return summaries


def busiest_group(summaries: Dict[str, GroupSummary]) -> str:
    """Group with the most assignments (first in display order on ties); empty string if none"""
    best, best_total = "", 0
    for group, summary in summaries.items():
        if summary.total > best_total:
            best, best_total = group, summary.total
    return best


def operation_statistics(operation_set: OperationSet) -> Dict:
    """
    Occupancy and per-person load for every operation of the month.

    Capacity counts only the days the operation has service.
    """
    month = operation_set.month
    per_person: Dict[str, Dict[str, int]] = {}
    operations = {}

    for op in STANDARD_OPERATIONS:
        roster = operation_set.roster(op.code)
        service_days = [d for d in month.days() if op.works_on_date(month.date_of(d))]
        capacity = len(service_days) * op.slot_count
        filled = roster.total_assignments()
        operations[op.code] = {
            "name": op.name,
            "slotsPerDay": op.slot_count,
            "serviceDays": len(service_days),
            "capacity": capacity,
            "filled": filled,
            "remaining": max(capacity - filled, 0),
            "occupancyPercent": round(filled * 100 / capacity) if capacity else 0,
        }
        for day in roster.days:
            for name in roster.occupants(day):
                counts = per_person.setdefault(name, {o.code: 0 for o in STANDARD_OPERATIONS})
                counts[op.code] += 1

    for name, counts in per_person.items():
        counts["total"] = sum(
            n for code, n in counts.items() if get_operation_by_code(code).is_capped
        )

    totals = [counts["total"] for counts in per_person.values()]
    capacity = sum(o["capacity"] for o in operations.values())
    filled = sum(o["filled"] for o in operations.values())

    distribution = []
    for label, low, high in DISTRIBUTION_BUCKETS:
        distribution.append({
            "label": label,
            "persons": sum(1 for t in totals if t >= low and (high is None or t <= high)),
        })

    return {
        "month": str(month),
        "operations": operations,
        "capacity": capacity,
        "filled": filled,
        "occupancyPercent": round(filled * 100 / capacity) if capacity else 0,
        "persons": dict(sorted(per_person.items(), key=lambda item: (-item[1]["total"], item[0]))),
        "nearLimit": sorted(n for n, c in per_person.items()
                            if NEAR_LIMIT_THRESHOLD <= c["total"] < MONTHLY_ASSIGNMENT_CAP),
        "atLimit": sorted(n for n, c in per_person.items() if c["total"] >= MONTHLY_ASSIGNMENT_CAP),
        "distribution": distribution,
    }
