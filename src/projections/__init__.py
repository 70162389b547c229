"""Projection calculators: time-to-goal, bottleneck and compound growth."""

from src.projections.goals import (
    analyze_bottleneck,
    calculate_time_to_goal,
    project_goal,
    required_monthly_contribution,
)
from src.projections.growth import CompoundGrowthSimulation, GrowthParameters

__all__ = [
    "CompoundGrowthSimulation",
    "GrowthParameters",
    "analyze_bottleneck",
    "calculate_time_to_goal",
    "project_goal",
    "required_monthly_contribution",
]
