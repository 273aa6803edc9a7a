from .types import Cut, CutType, IterationRecord, SolveStatus, SubproblemResult, SolveResult, TerminationStatus
from .master import MasterProblem
from .subproblem import Subproblem
from .solver import BendersRunResult, BendersSolver, relative_gap

__all__ = [
    "Cut",
    "CutType",
    "IterationRecord",
    "SolveStatus",
    "SubproblemResult",
    "SolveResult",
    "TerminationStatus",
    "MasterProblem",
    "Subproblem",
    "BendersSolver",
    "BendersRunResult",
    "relative_gap",
]
