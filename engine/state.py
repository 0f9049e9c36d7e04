from enum import Enum

class SearchState(Enum):
    """States an optimizer run passes through"""
    INIT = "init"                # Random feasible solution built
    SEARCHING = "searching"      # Annealing while temperature > 0
    CONVERGED = "converged"      # Deadline reached, best-seen solution kept
    CLEANUP = "cleanup"          # Threshold passes (attack planner only)
    DONE = "done"
