"""EvaluateScaling Use Case

Builds a scaling recommendation for one account from live usage, without
applying anything.
"""

from libs.result import Result, Return, Error
from src.app.repositories.hosting_account_repository import HostingAccountRepository, HostingAccountContext
from src.app.services.resource_manager import ResourceUsageProvider
from src.domain.scaling_log import ScalingLog
from src.domain.scaling_policy import ScalingPolicy, ScalingDecisionEngine, ResourceUsage
from .dtos import RecommendationDTO


def build_recommendation(
    context: HostingAccountContext, usage: ResourceUsage, policy: ScalingPolicy
) -> RecommendationDTO:
    """
    Run the decision engine and price its proposal

    Raises:
        ValueError: account has a zero allocation
    """
    account, _, plan = context
    recommendation = ScalingDecisionEngine(policy).evaluate(account, usage, plan)

    estimated_cost = ScalingLog.calculate_cost(
        recommendation.delta_ram,
        recommendation.delta_cpu,
        policy.cost_per_ram_mb,
        policy.cost_per_cpu_percent,
    )

    return RecommendationDTO(
        account_id=account.id,
        current_ram=account.current_ram,
        current_cpu=account.current_cpu,
        max_ram=plan.max_ram,
        max_cpu=plan.max_cpu,
        ram_usage_mb=usage.ram_usage_mb,
        cpu_usage=usage.cpu_usage_percent,
        ram_usage_percent=recommendation.ram_usage_percent,
        cpu_usage_percent=recommendation.cpu_usage_percent,
        needs_scaling=recommendation.needs_scaling,
        delta_ram=recommendation.delta_ram,
        delta_cpu=recommendation.delta_cpu,
        estimated_cost=estimated_cost,
    )


class EvaluateScaling:
    """
    Use Case: Recommend scaling for one account

    Error codes: ACCOUNT_NOT_FOUND, ACCOUNT_NOT_PROVISIONED, USAGE_NOT_AVAILABLE,
    INVALID_ALLOCATION
    """

    def __init__(self, account_repo: HostingAccountRepository, usage_provider: ResourceUsageProvider):
        self.account_repo = account_repo
        self.usage_provider = usage_provider

    async def execute(self, account_id: int, policy: ScalingPolicy) -> Result[RecommendationDTO]:
        try:
            context = await self.account_repo.get_context(account_id)
            if not context:
                return Return.err(
                    Error(code="ACCOUNT_NOT_FOUND", message=f"Hosting account {account_id} not found")
                )

            if not context.account.is_provisioned:
                return Return.err(
                    Error(
                        code="ACCOUNT_NOT_PROVISIONED",
                        message=f"Hosting account {account_id} has no resource manager id",
                    )
                )

            usage = await self.usage_provider.get_usage(context.account.resource_manager_id)
            if usage.is_err():
                return Return.err(usage.error)

            try:
                return Return.ok(build_recommendation(context, usage.value, policy))
            except ValueError as e:
                return Return.err(
                    Error(
                        code="INVALID_ALLOCATION",
                        message=f"Cannot evaluate account {account_id}",
                        reason=str(e),
                    )
                )

        except Exception as e:
            return Return.err(
                Error(
                    code="EVALUATE_SCALING_FAILED",
                    message=f"Failed to evaluate scaling for account {account_id}",
                    reason=str(e),
                )
            )
