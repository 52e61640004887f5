"""
Ordinary-duty vs extraordinary-roster conflict detection.

A conflict is a person who belongs to the group on ordinary duty on a
given day and also occupies a slot of an extraordinary operation on the
same day. The scanner is read-only and derives every record from the
supplied data.
"""

import logging
from typing import Dict, Iterable, List, Optional

from entities import ConflictRecord, GroupRoster, MonthKey, MonthRoster, OrdinaryDutyCalendar
from errors import DataUnavailable

logger = logging.getLogger(__name__)


def scan_conflicts(
    duty_calendar: Optional[OrdinaryDutyCalendar],
    group_roster: Optional[GroupRoster],
    rosters: Optional[Iterable[Optional[MonthRoster]]]
) -> List[ConflictRecord]:
    """
    Enumerate every (day, person, ordinary group, operation) conflict.

    Args:
        duty_calendar: Ordinary-duty group per day for the month
        group_roster: Members of each group
        rosters: Extraordinary operation rosters of the same month

    Returns:
        Conflict records sorted ascending by day. Within a day, records
        follow the order of `rosters` and then slot order.

    Raises:
        DataUnavailable: if any required input is missing
        ValueError: if a roster belongs to a different month than the calendar
    """
    if duty_calendar is None:
        raise DataUnavailable("Ordinary-duty calendar")
    if group_roster is None:
        raise DataUnavailable("Group roster", duty_calendar.month)
    if rosters is None:
        raise DataUnavailable("Extraordinary rosters", duty_calendar.month)

    rosters = list(rosters)
    for roster in rosters:
        if roster is None:
            raise DataUnavailable("Extraordinary roster", duty_calendar.month)
        if roster.month != duty_calendar.month:
            raise ValueError(
                f"{roster.operation} roster is for {roster.month}, "
                f"ordinary-duty calendar is for {duty_calendar.month}"
            )

    conflicts = []
    seen = set()

    for day in duty_calendar.days():
        group = duty_calendar.group_for(day)
        members = group_roster.members(group)
        if not members:
            continue

        for roster in rosters:
            for name in roster.occupants(day):
                if name not in members:
                    continue
                key = (day, name, roster.operation)
                if key in seen:
                    continue
                seen.add(key)
                conflicts.append(ConflictRecord(day, name, group, roster.operation))

    conflicts.sort(key=lambda c: c.day)
    logger.info(f"Conflict scan for {duty_calendar.month}: {len(conflicts)} conflict(s)")
    return conflicts


class ConflictReport:
    """
    Result of a conflict check for one month.

    Distinguishes "no conflicts found" from "the report could not be
    generated", so an empty list is never mistaken for a clean roster.
    """

    def __init__(self, month: MonthKey, conflicts: Optional[List[ConflictRecord]] = None,
                 error: Optional[str] = None):
        self.month = month
        self.conflicts = conflicts or []
        self.error = error

    @property
    def is_available(self) -> bool:
        return self.error is None

    @property
    def has_conflicts(self) -> bool:
        return self.is_available and bool(self.conflicts)

    def conflicts_by_day(self) -> Dict[int, List[ConflictRecord]]:
        by_day: Dict[int, List[ConflictRecord]] = {}
        for conflict in self.conflicts:
            by_day.setdefault(conflict.day, []).append(conflict)
        return by_day

    def summary(self) -> str:
        if not self.is_available:
            return f"Conflict report for {self.month} could not be generated: {self.error}"
        if not self.conflicts:
            return f"No conflicts found for {self.month}"
        noun = "conflict" if len(self.conflicts) == 1 else "conflicts"
        return f"{len(self.conflicts)} {noun} found for {self.month}"

    def to_dict(self) -> Dict:
        return {
            "month": str(self.month),
            "available": self.is_available,
            "error": self.error,
            "count": len(self.conflicts),
            "conflicts": [c.to_dict() for c in self.conflicts],
        }

    def print_report(self):
        """Print conflict report"""
        print("\n" + "=" * 60)
        print(f"CONFLICT REPORT - {self.month}")
        print("=" * 60)

        if not self.is_available:
            print(f"✗ REPORT UNAVAILABLE: {self.error}")
        elif not self.conflicts:
            print("✓ No conflicts found")
        else:
            print(f"\n⚠ CONFLICTS FOUND: {len(self.conflicts)}")
            for i, c in enumerate(self.conflicts, 1):
                print(f"  {i}. Day {c.day:2d}: {c.person} ({c.group}) also on {c.operation_label}")

        print("=" * 60)


def build_conflict_report(
    month: MonthKey,
    duty_calendar: Optional[OrdinaryDutyCalendar],
    group_roster: Optional[GroupRoster],
    rosters: Optional[Iterable[Optional[MonthRoster]]]
) -> ConflictReport:
    """Run the scanner and wrap the outcome; missing data yields an unavailable report"""
    try:
        conflicts = scan_conflicts(duty_calendar, group_roster, rosters)
    except DataUnavailable as e:
        logger.error(f"Conflict report for {month} unavailable: {e}")
        return ConflictReport(month, error=str(e))
    return ConflictReport(month, conflicts)
