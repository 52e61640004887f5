"""
Tests for roster summaries and occupancy statistics.
"""

from data_loader import generate_sample_data
from entities import MonthKey, MonthRoster, OperationSet
from schedule_summary import (
    busiest_group, operation_statistics, summarize_by_group, summarize_by_person
)

APRIL = MonthKey(2025, 4)


def test_summarize_by_person_counts_distinct_days():
    pmf = MonthRoster("pmf", APRIL, {
        1: ["CB CARLA", "SD PM LUAN", None],
        2: ["CB CARLA", None, None],
    })
    escola = MonthRoster("escolaSegura", APRIL, {1: ["CB CARLA", None]})

    summaries = summarize_by_person([pmf, escola])

    assert [(s.name, s.total) for s in summaries] == [("CB CARLA", 2), ("SD PM LUAN", 1)]
    assert summaries[0].days == [1, 2]


def test_summarize_by_group():
    directory, _, _ = generate_sample_data()
    pmf = MonthRoster("pmf", APRIL, {
        3: ["1º SGT PM OLIMAR", "SD PM LUAN", None],
        9: ["SD PM IDELVAN", None, None],
    })

    summaries = summarize_by_group(pmf, directory)

    assert list(summaries) == ["EXPEDIENTE", "ALFA", "BRAVO", "CHARLIE"]
    assert summaries["BRAVO"].total == 2
    assert summaries["BRAVO"].days == [3, 9]
    assert summaries["BRAVO"].days_by_person() == {"1º SGT PM OLIMAR": [3], "SD PM IDELVAN": [9]}
    assert summaries["ALFA"].persons_by_day == {3: ["SD PM LUAN"]}
    assert summaries["CHARLIE"].total == 0
    assert busiest_group(summaries) == "BRAVO"


def test_unknown_person_lands_in_ungrouped_bucket():
    directory, _, _ = generate_sample_data()
    pmf = MonthRoster("pmf", APRIL, {4: ["SD PM VISITANTE", None, None]})

    summaries = summarize_by_group(pmf, directory)

    assert summaries["OUTROS"].total == 1


def test_busiest_group_of_empty_roster():
    directory, _, _ = generate_sample_data()
    assert busiest_group(summarize_by_group(MonthRoster("pmf", APRIL), directory)) == ""


def test_operation_statistics():
    operation_set = OperationSet(APRIL, {
        "pmf": MonthRoster("pmf", APRIL, {d: ["SD PM A. SILVA", "CB CARLA", None] for d in range(1, 11)}),
        "escolaSegura": MonthRoster("escolaSegura", APRIL, {d: ["SD PM A. SILVA", None] for d in [14, 15]}),
    })

    stats = operation_statistics(operation_set)

    # April 2025 has 22 weekdays
    assert stats["operations"]["pmf"]["capacity"] == 90
    assert stats["operations"]["escolaSegura"]["serviceDays"] == 22
    assert stats["operations"]["escolaSegura"]["capacity"] == 44
    assert stats["operations"]["pmf"]["filled"] == 20
    assert stats["filled"] == 22
    assert stats["capacity"] == 134
    assert stats["persons"]["SD PM A. SILVA"] == {"pmf": 10, "escolaSegura": 2, "total": 12}
    assert stats["atLimit"] == ["SD PM A. SILVA"]
    assert stats["nearLimit"] == ["CB CARLA"]

    distribution = {bucket["label"]: bucket["persons"] for bucket in stats["distribution"]}
    assert distribution["10-11"] == 1
    assert distribution["12+"] == 1
    assert distribution["1-3"] == 0


def test_statistics_of_empty_month():
    stats = operation_statistics(OperationSet(APRIL))

    assert stats["filled"] == 0
    assert stats["occupancyPercent"] == 0
    assert stats["persons"] == {}
