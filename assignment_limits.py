"""
Monthly assignment-limit enforcement.

Decides whether a person may be placed into a duty slot, based on how
many slots the person already occupies in the month across all capped
operations. All functions are pure: the caller supplies every roster
that should be counted.

Sources are typically the server-confirmed rosters plus the locally
pending edits. When a specific day is being edited, the pending source
must leave that day out (see placement_sources) so the slot being
modified is not counted twice. The confirmed source is never trimmed,
it does not contain the uncommitted edit yet.
"""

import logging
from collections import Counter
from typing import Iterable, List, Optional, Sequence, Set

from entities import (
    MONTHLY_ASSIGNMENT_CAP, LIMIT_EXCEEDED,
    MonthKey, MonthRoster, PlacementResult, get_operation_by_code
)

logger = logging.getLogger(__name__)


def _counted_rosters(month: MonthKey, sources: Iterable[MonthRoster]) -> List[MonthRoster]:
    rosters = []
    for roster in sources:
        if roster.month != month:
            logger.debug(f"Ignoring {roster.operation} roster for {roster.month} while counting {month}")
            continue
        operation = get_operation_by_code(roster.operation)
        if operation is None or not operation.is_capped:
            continue
        rosters.append(roster)
    return rosters


def occurrence_counts(month: MonthKey, sources: Iterable[MonthRoster]) -> Counter:
    """
    Count slot occurrences of every person in the month.

    This is an appearance count, not a distinct-day count: a person who
    (by a data error) occupies two slots on the same day counts twice.
    """
    counts = Counter()
    for roster in _counted_rosters(month, sources):
        for row in roster.days.values():
            counts.update(name for name in row if name)
    return counts


def count_occurrences(person: str, month: MonthKey, sources: Iterable[MonthRoster]) -> int:
    """Number of occupied slots held by `person` across all supplied rosters of `month`"""
    return occurrence_counts(month, sources)[person]


def placement_sources(
    confirmed: Iterable[MonthRoster],
    pending: Iterable[MonthRoster],
    day: int
) -> List[MonthRoster]:
    """
    Build the source list used to authorize a placement on `day`.

    Confirmed rosters are used as-is; pending rosters have the edited
    day's row excluded.
    """
    sources = list(confirmed)
    sources.extend(roster.without_day(day) for roster in pending)
    return sources


def authorize_placement(
    person: Optional[str],
    day: int,
    month: MonthKey,
    sources: Iterable[MonthRoster]
) -> PlacementResult:
    """
    Authorize placing `person` into a slot on `day`.

    Removal (person is None or empty) is always authorized and skips the
    count entirely. Otherwise the placement is rejected once the person
    already holds MONTHLY_ASSIGNMENT_CAP or more occurrences.
    """
    month.check_day(day)

    if not person:
        return PlacementResult.ok()

    count = count_occurrences(person, month, sources)
    if count >= MONTHLY_ASSIGNMENT_CAP:
        logger.warning(
            f"Blocked placement of {person} on {month}-{day:02d}: "
            f"{count} assignments (limit {MONTHLY_ASSIGNMENT_CAP})"
        )
        return PlacementResult.rejected(person, LIMIT_EXCEEDED, count)

    return PlacementResult.ok(person, count)


def compute_limit_reached_set(
    persons: Iterable[str],
    month: MonthKey,
    sources: Iterable[MonthRoster]
) -> Set[str]:
    """Persons whose count over the known sources has reached the cap"""
    counts = occurrence_counts(month, sources)
    return {person for person in persons if counts[person] >= MONTHLY_ASSIGNMENT_CAP}


def compute_duplicate_in_day_set(
    day: int,
    rosters: Iterable[MonthRoster],
    own_selections: Sequence[Optional[str]] = ()
) -> Set[str]:
    """
    Persons already occupying a slot of any operation on `day`.

    Persons selected in the row currently being edited (`own_selections`)
    are left out so they stay removable.
    """
    in_use = set()
    for roster in rosters:
        in_use.update(roster.occupants(day))
    return in_use - {name for name in own_selections if name}
