"""
Candidate options for filling one duty slot.

A single builder serves every operation; the visual differences between
operations are selected through a presentation mode instead of separate
implementations.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from entities import GROUP_ORDER, MONTHLY_ASSIGNMENT_CAP, UNGROUPED, PersonnelDirectory

# Per-mode labels shown next to blocked candidates
PRESENTATION_MODES = {
    "standard": {
        "limit_badge": f"⛔ BLOQUEADO ({MONTHLY_ASSIGNMENT_CAP})",
        "in_use_badge": "Já escalado",
        "placeholder": "Selecione um policial",
    },
    "compact": {
        "limit_badge": f"Limite {MONTHLY_ASSIGNMENT_CAP}",
        "in_use_badge": "Escalado",
        "placeholder": "Selecione",
    },
}

# Default presentation mode per operation
OPERATION_PRESENTATION = {
    "pmf": "standard",
    "escolaSegura": "compact",
}


@dataclass
class SlotOption:
    name: str
    category: str  # "Oficial" or "Praça"
    disabled: bool = False
    limit_reached: bool = False
    badge: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "category": self.category,
            "disabled": self.disabled,
            "limitReached": self.limit_reached,
            "badge": self.badge,
        }


@dataclass
class OptionGroup:
    group: str
    options: List[SlotOption] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {"group": self.group, "options": [o.to_dict() for o in self.options]}


def presentation_for(mode: str) -> Dict[str, str]:
    if mode not in PRESENTATION_MODES:
        raise ValueError(f"Unknown presentation mode '{mode}' (expected one of: {', '.join(PRESENTATION_MODES)})")
    return PRESENTATION_MODES[mode]


def build_slot_options(
    persons: Iterable[str],
    directory: PersonnelDirectory,
    disabled: Iterable[str] = (),
    limit_reached: Iterable[str] = (),
    mode: str = "standard"
) -> List[OptionGroup]:
    """
    Group candidates by organizational group and sort each group by rank.

    Candidates that reached the monthly limit or are already in use on
    the day are kept in the list but marked disabled, with the badge of
    the presentation mode. Empty groups are left out.
    """
    labels = presentation_for(mode)
    disabled = set(disabled)
    limit_reached = set(limit_reached)

    grouped: Dict[str, List[str]] = {group: [] for group in GROUP_ORDER}
    for name in persons:
        group = directory.get(name).group
        grouped.setdefault(group if group in grouped else UNGROUPED, []).append(name)

    result = []
    for group, names in grouped.items():
        if not names:
            continue
        option_group = OptionGroup(group)
        for name in directory.sort_by_rank(names):
            at_limit = name in limit_reached
            in_use = name in disabled
            badge = None
            if at_limit:
                badge = labels["limit_badge"]
            elif in_use:
                badge = labels["in_use_badge"]
            option_group.options.append(SlotOption(
                name=name,
                category=directory.get(name).category,
                disabled=at_limit or in_use,
                limit_reached=at_limit,
                badge=badge,
            ))
        result.append(option_group)
    return result


def is_selectable(name: Optional[str], option_groups: List[OptionGroup]) -> bool:
    """Clearing a slot is always selectable; a candidate only when offered and enabled"""
    if not name:
        return True
    for group in option_groups:
        for option in group.options:
            if option.name == name:
                return not option.disabled
    return False
