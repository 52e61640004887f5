"""
Tests for PDF and Excel exports.
"""

import openpyxl

from conflict_scanner import ConflictReport
from data_loader import SAMPLE_MONTH, generate_sample_data
from entities import ConflictRecord, MonthRoster, OperationSet
from report_export import (
    build_conflict_report_pdf, build_group_summary_pdf, build_month_roster_workbook,
    format_month, weekday_name
)
from schedule_summary import summarize_by_group


def test_month_and_weekday_names():
    assert format_month(SAMPLE_MONTH) == "Abril 2025"
    # 2025-04-07 is a Monday
    assert weekday_name(SAMPLE_MONTH, 7) == "Segunda"
    assert weekday_name(SAMPLE_MONTH, 6) == "Domingo"


def test_conflict_report_pdf():
    report = ConflictReport(SAMPLE_MONTH, [
        ConflictRecord(7, "1º SGT PM OLIMAR", "BRAVO", "pmf"),
        ConflictRecord(8, "SD PM MARVÃO", "BRAVO", "escolaSegura"),
    ])

    buffer = build_conflict_report_pdf(report)

    assert buffer.getvalue().startswith(b"%PDF")


def test_empty_conflict_report_pdf():
    buffer = build_conflict_report_pdf(ConflictReport(SAMPLE_MONTH, []))

    assert buffer.getvalue().startswith(b"%PDF")


def test_unavailable_report_is_not_exported():
    report = ConflictReport(SAMPLE_MONTH, error="Ordinary-duty calendar is not available")

    try:
        build_conflict_report_pdf(report)
    except ValueError:
        pass
    else:
        assert False, "Unavailable report should not be exported"


def test_group_summary_pdf():
    directory, _, _ = generate_sample_data()
    pmf = MonthRoster("pmf", SAMPLE_MONTH, {
        3: ["1º SGT PM OLIMAR", "SD PM IDELVAN", None],
        12: ["SD PM IDELVAN", None, None],
    })
    summary = summarize_by_group(pmf, directory)["BRAVO"]

    buffer = build_group_summary_pdf(summary, "pmf", SAMPLE_MONTH)

    assert buffer.getvalue().startswith(b"%PDF")


def test_month_roster_workbook():
    operation_set = OperationSet(SAMPLE_MONTH, {
        "pmf": MonthRoster("pmf", SAMPLE_MONTH, {7: ["1º SGT PM OLIMAR", None, "SD PM LUAN"]}),
        "escolaSegura": MonthRoster("escolaSegura", SAMPLE_MONTH, {8: ["SD PM LUAN", None]}),
    })

    wb = openpyxl.load_workbook(build_month_roster_workbook(operation_set))

    assert wb.sheetnames == ["PMF", "ESCOLA SEGURA", "Totais"]

    pmf = wb["PMF"]
    assert pmf.max_row == 31
    assert [c.value for c in pmf[8]] == [7, "Segunda", "1º SGT PM OLIMAR", None, "SD PM LUAN"]

    escola = wb["ESCOLA SEGURA"]
    # 2025-04-05 is a Saturday
    assert escola.cell(row=6, column=3).value == "Sem expediente"

    totals = {row[0]: row[1:] for row in wb["Totais"].iter_rows(min_row=2, values_only=True)}
    assert totals["SD PM LUAN"] == (1, 1, 2)
