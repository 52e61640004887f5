"""
Tests for slot candidate options.
"""

from data_loader import generate_sample_data
from slot_options import OPERATION_PRESENTATION, build_slot_options, is_selectable, presentation_for


def test_options_grouped_and_sorted_by_rank():
    directory, _, _ = generate_sample_data()
    persons = ["SD PM LUAN", "CAP QOPM MUNIZ", "2º SGT PM PEIXOTO", "CB CARLA"]

    groups = build_slot_options(persons, directory)

    assert [g.group for g in groups] == ["EXPEDIENTE", "ALFA"]
    assert [o.name for o in groups[1].options] == ["2º SGT PM PEIXOTO", "CB CARLA", "SD PM LUAN"]
    assert groups[0].options[0].category == "Oficial"
    assert groups[1].options[0].category == "Praça"


def test_blocked_candidates_stay_listed_but_disabled():
    directory, _, _ = generate_sample_data()
    persons = ["SD PM A. SILVA", "CB CARLA", "SD PM LUAN"]

    groups = build_slot_options(
        persons, directory, disabled={"CB CARLA"}, limit_reached={"SD PM A. SILVA"}
    )
    options = {o.name: o for o in groups[0].options}

    assert options["SD PM A. SILVA"].disabled
    assert options["SD PM A. SILVA"].limit_reached
    assert options["SD PM A. SILVA"].badge == "⛔ BLOQUEADO (12)"
    assert options["CB CARLA"].disabled
    assert options["CB CARLA"].badge == "Já escalado"
    assert not options["SD PM LUAN"].disabled

    assert not is_selectable("SD PM A. SILVA", groups)
    assert not is_selectable("CB CARLA", groups)
    assert is_selectable("SD PM LUAN", groups)
    assert is_selectable(None, groups)
    assert not is_selectable("SD PM DESCONHECIDO", groups)


def test_compact_mode_labels():
    directory, _, _ = generate_sample_data()

    groups = build_slot_options(
        ["SD PM A. SILVA"], directory, limit_reached={"SD PM A. SILVA"},
        mode=OPERATION_PRESENTATION["escolaSegura"]
    )

    assert groups[0].options[0].badge == "Limite 12"
    assert groups[0].to_dict()["options"][0]["limitReached"] is True


def test_unknown_mode_raises():
    try:
        presentation_for("fancy")
    except ValueError:
        pass
    else:
        assert False, "Unknown presentation mode should raise ValueError"
