# backend/utils/workflow.py
"""Repair workflow of a bike: the ordered stages, their display metadata and
the moves allowed between them."""
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Union

from models.bike import BikeWorkflowStatus as S


class UnknownWorkflowStatus(ValueError):
    pass


class IllegalTransition(ValueError):
    def __init__(self, current: S, target: S):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move a bike from {current.value} to {target.value}")


@dataclass(frozen=True)
class WorkflowStep:
    status: S
    label_nl: str
    label_en: str
    description_nl: str
    description_en: str
    icon: str
    color: str
    hex_color: str


WORKFLOW_STEPS: List[WorkflowStep] = [
    WorkflowStep(
        S.DIAGNOSE_NODIG, "Diagnose nodig", "Diagnosis needed",
        "Uw fiets is binnen en wacht op een diagnose.",
        "Your bike has been received and is waiting for a diagnosis.",
        "file-search", "bg-red-600", "#dc2626",
    ),
    WorkflowStep(
        S.DIAGNOSE_BEZIG, "Diagnose bezig", "Diagnosis in progress",
        "Een monteur onderzoekt uw fiets.",
        "A mechanic is inspecting your bike.",
        "clipboard-check", "bg-yellow-400", "#facc15",
    ),
    WorkflowStep(
        S.WACHT_OP_AKKOORD, "Wacht op akkoord", "Waiting for approval",
        "We wachten op uw akkoord voor de voorgestelde reparaties.",
        "We are waiting for your approval of the proposed repairs.",
        "message-square", "bg-orange-500", "#f97316",
    ),
    WorkflowStep(
        S.WACHT_OP_ONDERDELEN, "Wacht op onderdelen", "Waiting for parts",
        "De benodigde onderdelen zijn besteld.",
        "The required parts have been ordered.",
        "package", "bg-fuchsia-600", "#c026d3",
    ),
    WorkflowStep(
        S.KLAAR_VOOR_REPARATIE, "Klaar voor reparatie", "Ready for repair",
        "Uw fiets staat in de rij voor reparatie.",
        "Your bike is queued for repair.",
        "thumbs-up", "bg-cyan-500", "#06b6d4",
    ),
    WorkflowStep(
        S.IN_REPARATIE, "In reparatie", "In repair",
        "Een monteur werkt aan uw fiets.",
        "A mechanic is working on your bike.",
        "wrench", "bg-green-500", "#22c55e",
    ),
    WorkflowStep(
        S.AFGEROND, "Afgerond", "Completed",
        "Uw fiets is klaar om opgehaald te worden.",
        "Your bike is ready for pick-up.",
        "check-circle", "bg-zinc-600", "#52525b",
    ),
]

WORKFLOW_SEQUENCE: List[S] = [step.status for step in WORKFLOW_STEPS]
_STEPS_BY_STATUS: Dict[S, WorkflowStep] = {step.status: step for step in WORKFLOW_STEPS}

# Moves a non-admin may make. Admins can force any move.
ALLOWED_TRANSITIONS: Dict[S, FrozenSet[S]] = {
    S.DIAGNOSE_NODIG: frozenset({S.DIAGNOSE_BEZIG}),
    S.DIAGNOSE_BEZIG: frozenset({S.DIAGNOSE_NODIG, S.WACHT_OP_AKKOORD}),
    S.WACHT_OP_AKKOORD: frozenset({S.DIAGNOSE_BEZIG, S.WACHT_OP_ONDERDELEN, S.KLAAR_VOOR_REPARATIE}),
    S.WACHT_OP_ONDERDELEN: frozenset({S.WACHT_OP_AKKOORD, S.KLAAR_VOOR_REPARATIE}),
    S.KLAAR_VOOR_REPARATIE: frozenset({S.WACHT_OP_ONDERDELEN, S.IN_REPARATIE}),
    S.IN_REPARATIE: frozenset({S.WACHT_OP_ONDERDELEN, S.KLAAR_VOOR_REPARATIE, S.AFGEROND}),
    S.AFGEROND: frozenset({S.IN_REPARATIE}),
}


def parse_status(value: Union[str, S]) -> S:
    if isinstance(value, S):
        return value
    try:
        return S(value)
    except ValueError:
        raise UnknownWorkflowStatus(f"Unknown workflow status: {value!r}") from None


def step(status: Union[str, S]) -> WorkflowStep:
    return _STEPS_BY_STATUS[parse_status(status)]


def index(status: Union[str, S]) -> int:
    return WORKFLOW_SEQUENCE.index(parse_status(status))


def progress(status: Union[str, S]) -> float:
    return (index(status) + 1) / len(WORKFLOW_SEQUENCE) * 100


def label(status: Union[str, S], lang: str = "nl") -> str:
    s = step(status)
    return s.label_en if lang == "en" else s.label_nl


def description(status: Union[str, S], lang: str = "nl") -> str:
    s = step(status)
    return s.description_en if lang == "en" else s.description_nl


def icon(status: Union[str, S]) -> str:
    return step(status).icon


def color(status: Union[str, S]) -> str:
    return step(status).color


def describe(status: Union[str, S], lang: str = "nl") -> dict:
    s = step(status)
    return {
        "status": s.status.value,
        "index": index(s.status),
        "label": label(s.status, lang),
        "description": description(s.status, lang),
        "icon": s.icon,
        "color": s.color,
        "hex_color": s.hex_color,
        "progress": progress(s.status),
    }


def all_steps(lang: str = "nl") -> List[dict]:
    return [describe(s, lang) for s in WORKFLOW_SEQUENCE]


def can_transition(current: Union[str, S], target: Union[str, S]) -> bool:
    current, target = parse_status(current), parse_status(target)
    return current == target or target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: Union[str, S], target: Union[str, S], force: bool = False) -> S:
    current, target = parse_status(current), parse_status(target)
    if not force and not can_transition(current, target):
        raise IllegalTransition(current, target)
    return target
