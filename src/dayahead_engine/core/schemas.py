"""Pydantic schemas for configuration, requests and results."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dayahead_engine.core.constants import (
    MINUTES_PER_DAY,
    SOC_STEP_KWH,
    TRADE_CORRIDOR_FRAC,
)


class ScheduledAction(BaseModel):
    """Constant-power load declared by the operator."""

    model_config = ConfigDict(populate_by_name=True)

    start_time: str = Field(..., alias="startTime", pattern=r"^\d{1,2}:\d{2}$", description="Start as HH:MM")
    duration_minutes: float = Field(..., gt=0, alias="duration", description="Duration in minutes")
    power_kw: float = Field(..., alias="power", description="Constant power in kW")

    @property
    def start_minute(self) -> int:
        hours, minutes = self.start_time.split(":")
        return int(hours) * 60 + int(minutes)

    @property
    def end_minute(self) -> float:
        return self.start_minute + self.duration_minutes


class BatteryConfig(BaseModel):
    """Battery asset and grid connection configuration."""

    model_config = ConfigDict(populate_by_name=True)

    capacity_kwh: float = Field(..., ge=0, alias="capacity", description="Battery capacity in kWh")
    start_soc_percent: float = Field(..., ge=0, le=100, alias="startSoc", description="Initial SOC in percent")
    power_limit_kw: float = Field(..., gt=0, alias="powerLimit", description="Max charge/discharge power in kW")
    grid_limit_kw: float = Field(..., gt=0, alias="gridLimit", description="Grid import limit in kW")

    @property
    def start_soc_kwh(self) -> float:
        return self.start_soc_percent / 100 * self.capacity_kwh

    def max_energy_per_interval(self, interval_minutes: float) -> float:
        """Battery energy limit per interval (kWh)."""
        return self.power_limit_kw * interval_minutes / 60

    def grid_limit_kwh_per_interval(self, interval_minutes: float) -> float:
        """Grid import limit per interval (kWh)."""
        return self.grid_limit_kw * interval_minutes / 60


class RunConfig(BaseModel):
    """Optimizer settings."""

    run_id: str = Field(default="dayahead", description="Run identifier used in logs")
    minutes_per_day: int = Field(default=MINUTES_PER_DAY, gt=0, description="Length of the planning day")
    soc_step_kwh: float = Field(default=SOC_STEP_KWH, gt=0, description="SOC discretization step")
    trade_corridor_frac: float = Field(
        default=TRADE_CORRIDOR_FRAC, ge=0, le=1, description="Upper bound of the trade corridor as capacity fraction"
    )
    max_soc_states: int = Field(default=20001, gt=0, description="Largest accepted DP state count")
    max_dp_evaluations: int = Field(
        default=500_000_000, gt=0, description="Largest accepted intervals x states x deltas product"
    )


class SimulationRequest(BaseModel):
    """Simulation request as received from the transport layer."""

    model_config = ConfigDict(populate_by_name=True)

    capacity_kwh: float = Field(..., ge=0, alias="capacity")
    start_soc_percent: float = Field(..., ge=0, le=100, alias="startSoc")
    power_limit_kw: float = Field(..., gt=0, alias="powerLimit")
    grid_limit_kw: float = Field(..., gt=0, alias="gridLimit")
    day_ahead_csv: str = Field(..., alias="dayAheadCsv")
    pv_profile_csv: Optional[str] = Field(default=None, alias="pvProfileCsv")
    actions: list[ScheduledAction] = Field(default_factory=list)

    @field_validator("pv_profile_csv")
    @classmethod
    def blank_pv_is_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty PV upload like a missing one."""
        if v is not None and not v.strip():
            return None
        return v

    @property
    def battery(self) -> BatteryConfig:
        return BatteryConfig(
            capacity_kwh=self.capacity_kwh,
            start_soc_percent=self.start_soc_percent,
            power_limit_kw=self.power_limit_kw,
            grid_limit_kw=self.grid_limit_kw,
        )


class IntervalResult(BaseModel):
    """Reported figures for one interval of the day."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: str
    price: float
    pv_production: float = Field(..., alias="pvProduction")
    planned_usage: float = Field(..., alias="plannedUsage")
    random_usage: float = Field(..., alias="randomUsage")
    net_load: float = Field(..., alias="netLoad")
    battery_action: float = Field(..., alias="batteryAction")
    soc: float
    grid_energy: float = Field(..., alias="gridEnergy")
    cost: float
    pv_self_consumed: float = Field(..., alias="pvSelfConsumed")
    pv_exported: float = Field(..., alias="pvExported")


class SimulationResult(BaseModel):
    """Aggregates plus the ordered interval records."""

    model_config = ConfigDict(populate_by_name=True)

    net_usage: float = Field(..., alias="netUsage")
    net_cost: float = Field(..., alias="netCost")
    avg_soc: float = Field(..., alias="avgSoc")
    pv_self_consumed: float = Field(..., alias="pvSelfConsumed")
    pv_exported: float = Field(..., alias="pvExported")
    export_revenue: float = Field(..., alias="exportRevenue")
    battery_exported: float = Field(..., alias="batteryExported")
    intervals: list[IntervalResult]

    def to_response(self) -> dict:
        """Serialize with the external camelCase field names."""
        return self.model_dump(by_alias=True)


class DispatchResult(BaseModel):
    """Statistics of a single optimizer run."""

    objective_value: float = Field(..., description="Realized profit of the extracted schedule (EUR)")
    dp_value: float = Field(..., description="Table value at the rounded start state (EUR)")
    solve_time_seconds: float
    num_states: int
    num_deltas: int
    intervals_per_day: int


class ErrorResponse(BaseModel):
    """Structured failure returned to the transport layer."""

    kind: str
    message: str
