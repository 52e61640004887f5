"""
Month-view editing session.

Holds the confirmed OperationSet for one month plus the slot changes made
since the last save. Every placement goes through the assignment limiter
before the pending state is touched; nothing is persisted here.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from assignment_limits import (
    authorize_placement, compute_duplicate_in_day_set,
    compute_limit_reached_set, placement_sources
)
from entities import (
    DUPLICATE_IN_DAY, NO_SERVICE_DAY,
    MonthRoster, OperationSet, PlacementResult, require_operation
)

logger = logging.getLogger(__name__)


class ScheduleEditSession:
    """
    Editing session for one month.

    Usage:
        session = ScheduleEditSession(load_operation_set(db_path, month))
        result = session.place("pmf", 7, 0, "1º SGT PM OLIMAR")
        if result.authorized:
            merged = session.save()
    """

    def __init__(self, confirmed: OperationSet, pending: Optional[Dict[str, MonthRoster]] = None):
        self.confirmed = confirmed
        self.month = confirmed.month
        # Edited rows per operation; only days touched in this session
        self.pending: Dict[str, MonthRoster] = {}
        for operation, roster in (pending or {}).items():
            if roster.month != self.month:
                raise ValueError(f"Pending {operation} roster is for {roster.month}, session is for {self.month}")
            self.pending[operation] = roster.copy()

    @property
    def has_changes(self) -> bool:
        return any(roster.days for roster in self.pending.values())

    def row(self, operation: str, day: int) -> List[Optional[str]]:
        """Current row for a day: the pending edit if any, else the confirmed row"""
        pending = self.pending.get(operation)
        if pending is not None and day in pending.days:
            return pending.row(day)
        return self.confirmed.roster(operation).row(day)

    def merged(self, operation: str) -> MonthRoster:
        """Confirmed roster with the pending rows applied"""
        roster = self.confirmed.roster(operation).copy()
        pending = self.pending.get(operation)
        if pending is not None:
            for day, row in pending.days.items():
                roster.set_row(day, row)
        return roster

    def merged_rosters(self) -> List[MonthRoster]:
        return [self.merged(roster.operation) for roster in self.confirmed.all_rosters()]

    def pending_additions(self) -> List[MonthRoster]:
        """Pending placements that are not already part of the confirmed data"""
        return [
            roster.additions_over(self.confirmed.roster(operation))
            for operation, roster in self.pending.items()
        ]

    def known_sources(self) -> List[MonthRoster]:
        return self.confirmed.all_rosters() + self.pending_additions()

    def place(self, operation: str, day: int, position: int, person: Optional[str]) -> PlacementResult:
        """
        Set or clear one slot.

        Clearing is always allowed. A new occupant is refused when the
        operation has no service that day, when the person is already
        used on that day, or when the monthly limit has been reached.
        """
        op = require_operation(operation)
        row = self.row(operation, day)
        if not 0 <= position < len(row):
            raise ValueError(f"Slot position {position} is outside {operation} row (0..{len(row) - 1})")

        if not person:
            self._write(operation, day, position, None)
            return PlacementResult.ok()

        if row[position] == person:
            return PlacementResult.ok(person)

        if not op.works_on_date(self.month.date_of(day)):
            return PlacementResult.rejected(person, NO_SERVICE_DAY)

        own = [name for i, name in enumerate(row) if i != position]
        if person in own or person in self.in_use(operation, day, own_selections=row):
            return PlacementResult.rejected(person, DUPLICATE_IN_DAY)

        sources = placement_sources(self.confirmed.all_rosters(), self.pending_additions(), day)
        result = authorize_placement(person, day, self.month, sources)
        if result.authorized:
            self._write(operation, day, position, person)
        return result

    def _write(self, operation: str, day: int, position: int, person: Optional[str]):
        row = self.row(operation, day)
        row[position] = person
        if operation not in self.pending:
            self.pending[operation] = MonthRoster(operation, self.month)
        self.pending[operation].set_row(day, row)

    def in_use(self, operation: str, day: int, own_selections: Sequence[Optional[str]] = ()) -> set:
        """Persons already used on `day` in any operation, except the edited row's own selections"""
        return compute_duplicate_in_day_set(day, self.merged_rosters(), own_selections)

    def limit_reached(self, persons: Iterable[str]) -> set:
        return compute_limit_reached_set(persons, self.month, self.known_sources())

    def availability(self, operation: str, day: int, persons: Iterable[str]) -> Dict[str, set]:
        """Persons to suppress when offering candidates for one row"""
        require_operation(operation)
        persons = list(persons)
        own = self.row(operation, day)
        return {
            "limit_reached": self.limit_reached(persons),
            "in_use": self.in_use(operation, day, own_selections=own),
        }

    def save(self) -> OperationSet:
        """Apply pending rows, returning the merged set; the session starts clean afterwards"""
        merged = OperationSet(self.month, {r.operation: r for r in self.merged_rosters()})
        changed = sum(len(r.days) for r in self.pending.values())
        logger.info(f"Saving {self.month}: {changed} edited day row(s)")
        self.confirmed = merged
        self.pending = {}
        return merged
