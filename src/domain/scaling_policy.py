"""Scaling Policy and Decision Engine

Pure threshold/step policy deciding whether an account needs more memory or
CPU. No I/O: usage is fetched by the caller and passed in.
"""

from decimal import Decimal
from typing import Any, Mapping, Protocol
from pydantic import BaseModel, ConfigDict, Field


class ScalingPolicy(BaseModel):
    """
    Configuration snapshot for one sweep

    Built once per sweep from configuration and never re-read mid-sweep.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    ram_threshold: float = Field(default=80, gt=0, description="RAM usage percent that triggers scaling")
    cpu_threshold: float = Field(default=50, gt=0, description="CPU usage percent that triggers scaling")
    ram_step: int = Field(default=256, gt=0, description="RAM increment (MB)")
    cpu_step: int = Field(default=50, gt=0, description="CPU increment (percentage points)")
    cost_per_ram_mb: Decimal = Field(default=Decimal("0.01"), ge=0)
    cost_per_cpu_percent: Decimal = Field(default=Decimal("0.02"), ge=0)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ScalingPolicy":
        """Build a policy from raw configuration keys (env.yaml layout)"""
        defaults = cls()
        return cls(
            enabled=bool(data.get("AUTOSCALING_ENABLED", defaults.enabled)),
            ram_threshold=data.get("AUTOSCALING_RAM_THRESHOLD", defaults.ram_threshold),
            cpu_threshold=data.get("AUTOSCALING_CPU_THRESHOLD", defaults.cpu_threshold),
            ram_step=data.get("AUTOSCALING_RAM_STEP", defaults.ram_step),
            cpu_step=data.get("AUTOSCALING_CPU_STEP", defaults.cpu_step),
            cost_per_ram_mb=Decimal(str(data.get("AUTOSCALING_COST_PER_RAM_MB", defaults.cost_per_ram_mb))),
            cost_per_cpu_percent=Decimal(
                str(data.get("AUTOSCALING_COST_PER_CPU_PERCENT", defaults.cost_per_cpu_percent))
            ),
        )


class ResourceUsage(BaseModel):
    """Usage snapshot reported by the resource manager"""

    model_config = ConfigDict(frozen=True)

    ram_usage_mb: int = Field(ge=0)
    cpu_usage_percent: int = Field(ge=0)


class ScalingRecommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    needs_scaling: bool
    delta_ram: int = 0
    delta_cpu: int = 0
    ram_usage_percent: float
    cpu_usage_percent: float


class Allocation(Protocol):
    current_ram: int
    current_cpu: int


class Ceiling(Protocol):
    max_ram: int
    max_cpu: int


def clamp_delta(current: int, delta: int, maximum: int) -> int:
    """Largest increase <= delta that keeps current + increase <= maximum"""
    return max(0, min(delta, maximum - current))


class ScalingDecisionEngine:
    """
    Threshold/step scaling decisions

    Rules:
    1. usage percent = usage / current allocation * 100, per dimension
    2. RAM at or over ram_threshold and below max_ram -> propose ram_step
    3. CPU at or over cpu_threshold and below max_cpu -> propose cpu_step
    4. Each proposal is clamped to the plan ceiling; a dimension clamped to
       zero is dropped while the other may still apply
    5. Never proposes a decrease
    """

    def __init__(self, policy: ScalingPolicy):
        self.policy = policy

    def evaluate(self, account: Allocation, usage: ResourceUsage, plan: Ceiling) -> ScalingRecommendation:
        if account.current_ram <= 0 or account.current_cpu <= 0:
            raise ValueError(
                f"Cannot evaluate usage against a zero allocation "
                f"(ram={account.current_ram}, cpu={account.current_cpu})"
            )

        ram_usage_percent = usage.ram_usage_mb / account.current_ram * 100
        cpu_usage_percent = usage.cpu_usage_percent / account.current_cpu * 100

        delta_ram = 0
        if ram_usage_percent >= self.policy.ram_threshold and account.current_ram < plan.max_ram:
            delta_ram = self.policy.ram_step

        delta_cpu = 0
        if cpu_usage_percent >= self.policy.cpu_threshold and account.current_cpu < plan.max_cpu:
            delta_cpu = self.policy.cpu_step

        delta_ram, delta_cpu = self.clamp(account, plan, delta_ram, delta_cpu)

        return ScalingRecommendation(
            needs_scaling=delta_ram > 0 or delta_cpu > 0,
            delta_ram=delta_ram,
            delta_cpu=delta_cpu,
            ram_usage_percent=round(ram_usage_percent, 2),
            cpu_usage_percent=round(cpu_usage_percent, 2),
        )

    @staticmethod
    def clamp(account: Allocation, plan: Ceiling, delta_ram: int, delta_cpu: int) -> tuple[int, int]:
        return (
            clamp_delta(account.current_ram, delta_ram, plan.max_ram),
            clamp_delta(account.current_cpu, delta_cpu, plan.max_cpu),
        )
