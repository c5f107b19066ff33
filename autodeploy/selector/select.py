import logging
from typing import Optional

from ..analyzer.profile import RepositoryProfile
from ..errors import ExtractionFailure
from ..generator.validate import check_references
from ..nlp.schema import AppType, RequirementModel
from .blueprints import single_instance
from .plan import Decision, DeploymentPlan, DraftConfig
from .rules import estimate_cost, instance_size, justify, select_topology

logger = logging.getLogger(__name__)


def decide(requirements: RequirementModel, profile: RepositoryProfile) -> Decision:
    """Pure mapping from requirements and repository facts to a topology decision."""
    topology = select_topology(requirements, profile)
    provider = requirements.cloud_provider
    cost = estimate_cost(topology, provider)
    app_type = profile.app_type
    if app_type == AppType.UNKNOWN and requirements.application_type is not None:
        app_type = requirements.application_type
    return Decision(
        topology=topology,
        instance_size=instance_size(topology, provider),
        estimated_monthly_cost=cost,
        justification=justify(topology, app_type, cost),
    )


def build_plan(
    requirements: RequirementModel,
    profile: RepositoryProfile,
    draft: Optional[DraftConfig] = None,
    repository_reference: str = "",
) -> DeploymentPlan:
    """
    Combine the decision with a resource graph.

    A drafted graph is used as-is after its variable references are checked;
    otherwise the built-in single-instance blueprint is used.

    Raises:
        ExtractionFailure: the drafted graph references an undeclared variable
    """
    decision = decide(requirements, profile)
    provider = requirements.cloud_provider

    if draft is not None:
        missing = check_references(draft.resources, draft.variables, provider, draft.outputs)
        if missing:
            raise ExtractionFailure(
                f"Drafted configuration references undeclared variables: {', '.join(sorted(missing))}"
            )
        resources, variables, outputs = list(draft.resources), dict(draft.variables), dict(draft.outputs)
        logger.info("Using drafted configuration with %d resources", len(resources))
    else:
        resources, variables, outputs = single_instance(
            provider, decision.topology, decision.instance_size, requirements, profile, repository_reference
        )

    return DeploymentPlan(
        topology=decision.topology,
        instance_size=decision.instance_size,
        provider=provider,
        resource_graph=tuple(resources),
        variables=variables,
        outputs=outputs,
        estimated_monthly_cost=decision.estimated_monthly_cost,
        justification=decision.justification,
        drafted=draft is not None,
        app_port=profile.primary_port,
    )
