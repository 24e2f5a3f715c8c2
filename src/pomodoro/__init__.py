from .display import CountdownDisplay
from .service import (
    Phase,
    PhaseKind,
    PhasePlan,
    PhaseScheduler,
)

__all__ = [
    "CountdownDisplay",
    "Phase",
    "PhaseKind",
    "PhasePlan",
    "PhaseScheduler",
]
