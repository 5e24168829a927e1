"""Autoscaling use cases"""
from .evaluate_scaling import EvaluateScaling, build_recommendation
from .charge_scaling import ChargeScaling
from .scale_account import ScaleAccount
from .run_autoscaling import RunAutoscaling
from .list_scaling_logs import ListScalingLogs
from .settle_pending_payments import SettlePendingPayments
from .toggle_autoscaling import ToggleAutoscaling
from .dtos import (
    ScaleAccountCommandDTO,
    ScalingOutcomeDTO,
    ChargeScalingCommandDTO,
    ChargeResultDTO,
    RecommendationDTO,
    SweepAction,
    SweepDetailDTO,
    RunSweepCommandDTO,
    SweepResultDTO,
    ScalingLogDTO,
    ListScalingLogsQueryDTO,
    ListScalingLogsResponseDTO,
    SettlementResultDTO,
    ToggleAutoscalingCommandDTO,
    AutoscalingSettingDTO,
)

__all__ = [
    "EvaluateScaling",
    "build_recommendation",
    "ChargeScaling",
    "ScaleAccount",
    "RunAutoscaling",
    "ListScalingLogs",
    "SettlePendingPayments",
    "ToggleAutoscaling",
    "ScaleAccountCommandDTO",
    "ScalingOutcomeDTO",
    "ChargeScalingCommandDTO",
    "ChargeResultDTO",
    "RecommendationDTO",
    "SweepAction",
    "SweepDetailDTO",
    "RunSweepCommandDTO",
    "SweepResultDTO",
    "ScalingLogDTO",
    "ListScalingLogsQueryDTO",
    "ListScalingLogsResponseDTO",
    "SettlementResultDTO",
    "ToggleAutoscalingCommandDTO",
    "AutoscalingSettingDTO",
]
