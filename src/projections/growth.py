"""
Compound-growth simulator for the investment calculator.

The simulation is a lazy, finite and restartable sequence: iterating it
twice yields the same points.
"""

from typing import Iterator, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.config.settings import EngineSettings, get_engine_settings
from src.models.summary import GrowthPoint


class GrowthParameters(BaseModel):
    """Inputs of a what-if simulation."""

    model_config = ConfigDict(frozen=True)

    initial_value: float = Field(default=0.0, ge=0)
    monthly_contribution: float = Field(default=0.0, ge=0)
    rate: float = Field(
        default=0.0,
        ge=0,
        description="Interest rate in percent per rate_period"
    )
    rate_period: Literal["yearly", "monthly"] = "yearly"
    duration: int = Field(default=5, ge=0)
    duration_unit: Literal["years", "months"] = "years"

    @property
    def total_months(self) -> int:
        return self.duration * 12 if self.duration_unit == "years" else self.duration

    @property
    def monthly_rate(self) -> float:
        """Effective monthly rate; a yearly rate is converted geometrically."""
        rate = self.rate / 100
        if self.rate_period == "yearly":
            return (1 + rate) ** (1 / 12) - 1
        return rate


class CompoundGrowthSimulation:
    """
    Month-by-month compound growth with a fixed monthly contribution.

    Each month: ``balance = balance * (1 + monthly_rate) + contribution``.
    Simulations longer than the chart point limit only emit a point every
    12 months plus the final month.

    Usage:
        simulation = CompoundGrowthSimulation(GrowthParameters(
            initial_value=1000, monthly_contribution=100, rate=12,
        ))
        for point in simulation:
            ...
    """

    def __init__(
        self,
        parameters: GrowthParameters,
        *,
        settings: Optional[EngineSettings] = None,
    ):
        self.parameters = parameters
        self._limit = (settings or get_engine_settings()).monthly_chart_point_limit

    @property
    def is_condensed(self) -> bool:
        return self.parameters.total_months > self._limit

    def _label(self, month: int) -> str:
        if self.parameters.duration_unit == "years" and self.is_condensed:
            return f"Year {month // 12}"
        return f"Month {month}"

    def __iter__(self) -> Iterator[GrowthPoint]:
        params = self.parameters
        total_months = params.total_months
        rate = params.monthly_rate
        condensed = self.is_condensed

        balance = params.initial_value
        invested = params.initial_value
        last_label = None

        for month in range(total_months + 1):
            if not condensed or month % 12 == 0 or month == total_months:
                label = self._label(month)
                if label != last_label:
                    last_label = label
                    yield GrowthPoint(
                        month=month,
                        label=label,
                        invested=round(invested, 2),
                        interest_accrued=round(balance - invested, 2),
                        total=round(balance, 2),
                    )

            if month < total_months:
                balance = balance * (1 + rate) + params.monthly_contribution
                invested += params.monthly_contribution

    def final(self) -> GrowthPoint:
        """The last point of the simulation."""
        point = None
        for point in self:
            pass
        return point
