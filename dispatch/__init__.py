#Expose the high-level pipeline pieces:
#Feasibility (hard rules: seats, availability, reachability)
#Cost model
#Greedy scheduler (the "one call" entry point)

from .feasibility import FeasibilityResult, can_assign, can_reach_on_time
from .cost import CostBreakdown, estimate_cost
from .scheduler import GreedyScheduler, ScheduleResult, optimize_driver_scheduling #the main function to call to schedule rides

__all__ = [
    "FeasibilityResult",
    "can_assign",
    "can_reach_on_time",
    "CostBreakdown",
    "estimate_cost",
    "GreedyScheduler",
    "ScheduleResult",
    "optimize_driver_scheduling",
]
