"""
Exceptions raised by the roster loaders, the conflict scanner and
reference-data validation.
"""

from typing import Dict, List, Optional


class RosterError(Exception):
    """Base class for roster errors"""


class DataUnavailable(RosterError):
    """
    Roster or reference data needed for a computation could not be supplied.

    Callers must surface this as a failed computation and never treat it
    as "zero conflicts" or "zero assignments".
    """

    def __init__(self, what: str, month: Optional[object] = None, detail: Optional[str] = None):
        self.what = what
        self.month = month
        self.detail = detail
        message = f"{what} is not available"
        if month is not None:
            message += f" for {month}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class InconsistentGroupAssignment(RosterError):
    """Reference data lists a person in several groups or leaves calendar days without a group"""

    def __init__(self, multi_group_members: Dict[str, List[str]], missing_days: List[int]):
        self.multi_group_members = multi_group_members
        self.missing_days = missing_days
        parts = []
        if multi_group_members:
            names = ", ".join(f"{name} ({'/'.join(groups)})" for name, groups in sorted(multi_group_members.items()))
            parts.append(f"persons in more than one group: {names}")
        if missing_days:
            parts.append(f"days without an ordinary-duty group: {', '.join(map(str, missing_days))}")
        super().__init__("Inconsistent reference data - " + "; ".join(parts))
