"""
Data loader for the extraordinary duty roster.
Generates sample reference data or loads rosters and reference data from SQLite.
"""

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from entities import (
    STANDARD_OPERATIONS, GroupRoster, MonthKey, MonthRoster, OperationSet,
    OrdinaryDutyCalendar, Person, PersonnelDirectory, require_operation
)
from errors import DataUnavailable, InconsistentGroupAssignment

logger = logging.getLogger(__name__)

# Month covered by the bundled ordinary-duty calendar
SAMPLE_MONTH = MonthKey(2025, 4)


def generate_sample_data() -> Tuple[PersonnelDirectory, GroupRoster, OrdinaryDutyCalendar]:
    """
    Generate sample reference data (April 2025 company roster).

    Returns:
        Tuple of (directory, group_roster, ordinary_duty_calendar)
    """
    persons = [
        # EXPEDIENTE
        Person("CAP QOPM MUNIZ", "CAP", "EXPEDIENTE"),
        Person("1º TEN QOPM MONTEIRO", "TEN", "EXPEDIENTE"),
        Person("SUB TEN ANDRÉ", "SUB TEN", "EXPEDIENTE"),

        # ALFA
        Person("2º SGT PM PEIXOTO", "2º SGT", "ALFA"),
        Person("3º SGT PM RODRIGO", "3º SGT", "ALFA"),
        Person("3º SGT PM LEDO", "3º SGT", "ALFA"),
        Person("3º SGT PM NUNES", "3º SGT", "ALFA"),
        Person("3º SGT AMARAL", "3º SGT", "ALFA"),
        Person("CB CARLA", "CB", "ALFA"),
        Person("CB PM FELIPE", "CB", "ALFA"),
        Person("CB PM BARROS", "CB", "ALFA"),
        Person("SD PM A. SILVA", "SD", "ALFA"),
        Person("SD PM LUAN", "SD", "ALFA"),
        Person("SD PM NAVARRO", "SD", "ALFA"),

        # BRAVO
        Person("1º SGT PM OLIMAR", "1º SGT", "BRAVO"),
        Person("2º SGT PM FÁBIO", "2º SGT", "BRAVO"),
        Person("3º SGT PM ANA CLEIDE", "3º SGT", "BRAVO"),
        Person("3º SGT PM GLEIDSON", "3º SGT", "BRAVO"),
        Person("3º SGT PM CARLOS EDUARDO", "3º SGT", "BRAVO"),
        Person("3º SGT PM NEGRÃO", "3º SGT", "BRAVO"),
        Person("CB PM BRASIL", "CB", "BRAVO"),
        Person("SD PM MARVÃO", "SD", "BRAVO"),
        Person("SD PM IDELVAN", "SD", "BRAVO"),

        # CHARLIE
        Person("2º SGT PM PINHEIRO", "2º SGT", "CHARLIE"),
        Person("3º SGT PM RAFAEL", "3º SGT", "CHARLIE"),
        Person("CB PM MIQUEIAS", "CB", "CHARLIE"),
        Person("CB PM M. PAIXÃO", "CB", "CHARLIE"),
        Person("SD PM CHAGAS", "SD", "CHARLIE"),
        Person("SD PM CARVALHO", "SD", "CHARLIE"),
        Person("SD PM GOVEIA", "SD", "CHARLIE"),
        Person("SD PM ALMEIDA", "SD", "CHARLIE"),
        Person("SD PM PATRIK", "SD", "CHARLIE"),
        Person("SD PM GUIMARÃES", "SD", "CHARLIE"),
    ]
    directory = PersonnelDirectory(persons)
    group_roster = GroupRoster.from_directory(directory)

    # Ordinary-duty rotation for April 2025
    groups_by_day = {}
    for days, group in [
        (range(1, 4), "CHARLIE"),
        (range(4, 10), "BRAVO"),
        (range(10, 18), "ALFA"),
        (range(18, 25), "CHARLIE"),
        (range(25, 31), "BRAVO"),
    ]:
        for day in days:
            groups_by_day[day] = group

    return directory, group_roster, OrdinaryDutyCalendar(SAMPLE_MONTH, groups_by_day)


def validate_reference_data(
    group_roster: GroupRoster,
    duty_calendar: Optional[OrdinaryDutyCalendar] = None,
    strict: bool = False
) -> List[str]:
    """
    Check reference data for persons listed in several groups and for
    calendar days without an ordinary-duty group.

    In tolerant mode the issues are logged and returned; lookups then
    treat such persons and days as having no group.

    Raises:
        InconsistentGroupAssignment: in strict mode, when any issue is found
    """
    multi = group_roster.multi_group_members()
    missing = duty_calendar.missing_days() if duty_calendar is not None else []

    issues = []
    for name, groups in sorted(multi.items()):
        issues.append(f"{name} is listed in several groups: {', '.join(groups)}")
    if missing:
        issues.append(
            f"Ordinary-duty calendar {duty_calendar.month} has no group for day(s) "
            f"{', '.join(map(str, missing))}"
        )

    if issues and strict:
        raise InconsistentGroupAssignment(multi, missing)
    for issue in issues:
        logger.warning(issue)
    return issues


def _connect(db_path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def load_personnel(db_path: str = "escala.db") -> PersonnelDirectory:
    """
    Load the active personnel directory.

    Raises:
        DataUnavailable: if the directory is empty or cannot be read
    """
    try:
        conn = _connect(db_path)
        try:
            rows = conn.execute(
                "SELECT Name, Rank, GroupName FROM Personnel WHERE IsActive = 1 ORDER BY Id"
            ).fetchall()
        finally:
            conn.close()
    except sqlite3.Error as e:
        raise DataUnavailable("Personnel directory", detail=str(e)) from e

    if not rows:
        raise DataUnavailable("Personnel directory", detail="no active personnel")

    return PersonnelDirectory(Person(row["Name"], row["Rank"], row["GroupName"]) for row in rows)


def load_group_roster(db_path: str = "escala.db") -> GroupRoster:
    """Group membership as recorded in the personnel directory"""
    return GroupRoster.from_directory(load_personnel(db_path))


def load_ordinary_calendar(db_path: str, month: MonthKey) -> OrdinaryDutyCalendar:
    """
    Load the ordinary-duty calendar of one month.

    No other month is ever substituted when the requested one is missing.

    Raises:
        DataUnavailable: if the month has no calendar entries
    """
    try:
        conn = _connect(db_path)
        try:
            rows = conn.execute(
                "SELECT Day, GroupName FROM OrdinaryDutyCalendar WHERE Year = ? AND Month = ? ORDER BY Day",
                (month.year, month.month)
            ).fetchall()
        finally:
            conn.close()
    except sqlite3.Error as e:
        raise DataUnavailable("Ordinary-duty calendar", month, str(e)) from e

    if not rows:
        raise DataUnavailable("Ordinary-duty calendar", month)

    return OrdinaryDutyCalendar(month, {row["Day"]: row["GroupName"] for row in rows})


def load_month_roster(db_path: str, operation: str, month: MonthKey) -> MonthRoster:
    """
    Load one operation's roster; a month that was never saved is an empty roster.

    Raises:
        DataUnavailable: if the database cannot be read
    """
    require_operation(operation)
    try:
        conn = _connect(db_path)
        try:
            row = conn.execute(
                "SELECT Data FROM MonthRosters WHERE Operation = ? AND Year = ? AND Month = ?",
                (operation, month.year, month.month)
            ).fetchone()
        finally:
            conn.close()
    except sqlite3.Error as e:
        raise DataUnavailable(f"{operation} roster", month, str(e)) from e

    if row is None:
        return MonthRoster(operation, month)
    return MonthRoster.from_dict(operation, month, json.loads(row["Data"]))


def load_operation_set(db_path: str, month: MonthKey) -> OperationSet:
    """Load every operation's roster for the month"""
    return OperationSet(month, {
        op.code: load_month_roster(db_path, op.code, month) for op in STANDARD_OPERATIONS
    })


def save_month_roster(db_path: str, roster: MonthRoster, saved_by: Optional[str] = None):
    """Persist a whole month roster, replacing any previous version"""
    conn = sqlite3.connect(db_path)
    try:
        conn.execute("""
            INSERT INTO MonthRosters (Operation, Year, Month, Data, UpdatedAt, UpdatedBy)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT (Operation, Year, Month) DO UPDATE SET
                Data = excluded.Data,
                UpdatedAt = excluded.UpdatedAt,
                UpdatedBy = excluded.UpdatedBy
        """, (
            roster.operation,
            roster.month.year,
            roster.month.month,
            json.dumps(roster.to_dict(), ensure_ascii=False),
            datetime.now(timezone.utc).isoformat(),
            saved_by
        ))
        conn.commit()
    finally:
        conn.close()

    logger.info(f"Saved {roster.operation} roster for {roster.month} ({roster.total_assignments()} assignments)")
