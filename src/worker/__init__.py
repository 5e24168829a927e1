"""Background workers for the autoscaling service"""
from .autoscaler import AutoscalingWorker
from .wallet_reconciler import WalletReconcilerWorker

__all__ = ["AutoscalingWorker", "WalletReconcilerWorker"]
