from .base import BaseModel
from .hosting_plan import HostingPlan
from .purchased_hosting import PurchasedHosting, PurchaseStatus
from .hosting_account import HostingAccount, AccountStatus
from .scaling_log import ScalingLog, ScalingReason, PaymentStatus, InvalidPaymentTransition
from .wallet import Wallet
from .wallet_log import WalletLog, WalletEntryType
from .scaling_policy import (
    ScalingPolicy,
    ResourceUsage,
    ScalingRecommendation,
    ScalingDecisionEngine,
    clamp_delta,
)

__all__ = [
    "BaseModel",
    "HostingPlan",
    "PurchasedHosting",
    "PurchaseStatus",
    "HostingAccount",
    "AccountStatus",
    "ScalingLog",
    "ScalingReason",
    "PaymentStatus",
    "InvalidPaymentTransition",
    "Wallet",
    "WalletLog",
    "WalletEntryType",
    "ScalingPolicy",
    "ResourceUsage",
    "ScalingRecommendation",
    "ScalingDecisionEngine",
    "clamp_delta",
]
