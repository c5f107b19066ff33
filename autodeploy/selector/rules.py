from typing import Dict, Tuple

from ..analyzer.profile import RepositoryProfile
from ..nlp.schema import AppType, CloudProvider, RequirementModel, ScalingMode
from .plan import Topology

FALLBACK_SIZE = "smallest-general-purpose"
FALLBACK_COST = 10.0

INSTANCE_SIZES: Dict[Tuple[Topology, CloudProvider], str] = {
    (Topology.SINGLE_VM, CloudProvider.AWS): "t3.micro",
    (Topology.SINGLE_VM, CloudProvider.GCP): "e2-micro",
    (Topology.SINGLE_VM, CloudProvider.AZURE): "Standard_B1s",
    (Topology.SINGLE_VM, CloudProvider.DIGITALOCEAN): "s-1vcpu-1gb",
    (Topology.CONTAINER_SERVICE, CloudProvider.AWS): "t3.small",
    (Topology.CONTAINER_SERVICE, CloudProvider.GCP): "e2-small",
    (Topology.CONTAINER_SERVICE, CloudProvider.AZURE): "Standard_B1ms",
    (Topology.CONTAINER_SERVICE, CloudProvider.DIGITALOCEAN): "s-1vcpu-2gb",
    (Topology.ORCHESTRATED, CloudProvider.AWS): "t3.medium",
    (Topology.ORCHESTRATED, CloudProvider.GCP): "e2-medium",
    (Topology.ORCHESTRATED, CloudProvider.AZURE): "Standard_B2s",
    (Topology.ORCHESTRATED, CloudProvider.DIGITALOCEAN): "s-2vcpu-4gb",
}

# Illustrative monthly figures, not billing data.
COSTS: Dict[Tuple[Topology, CloudProvider], float] = {
    (Topology.SINGLE_VM, CloudProvider.AWS): 8.76,
    (Topology.SINGLE_VM, CloudProvider.GCP): 5.32,
}
TOPOLOGY_COSTS: Dict[Topology, float] = {
    Topology.CONTAINER_SERVICE: 25.0,
    Topology.ORCHESTRATED: 73.0,
    Topology.SERVERLESS: 5.0,
    Topology.STATIC_SITE: 1.0,
}

JUSTIFICATIONS: Dict[Topology, str] = {
    Topology.SINGLE_VM: (
        "Single VM deployment chosen for {app} application. "
        "Cost-effective for simple apps with moderate traffic. Estimated cost: {cost}."
    ),
    Topology.CONTAINER_SERVICE: (
        "Container service deployment for the {app} application, which ships Docker configuration. "
        "Gives isolation and room to scale. Estimated cost: {cost}."
    ),
    Topology.SERVERLESS: (
        "Serverless deployment for the {app} application with automatic scaling and pay-per-use pricing. "
        "Estimated cost: {cost}."
    ),
    Topology.ORCHESTRATED: (
        "Orchestrated deployment for the {app} application behind a load balancer "
        "for high availability. Estimated cost: {cost}."
    ),
    Topology.STATIC_SITE: (
        "Static site hosting for the {app} frontend, which has no build or server step. "
        "Estimated cost: {cost}."
    ),
}


def select_topology(requirements: RequirementModel, profile: RepositoryProfile) -> Topology:
    if requirements.scaling_mode == ScalingMode.SERVERLESS:
        return Topology.SERVERLESS
    if requirements.scaling_mode == ScalingMode.LOADBALANCED:
        return Topology.ORCHESTRATED
    if profile.app_type in (AppType.REACT, AppType.NEXTJS) and not profile.requires_build:
        return Topology.STATIC_SITE
    if profile.docker is not None:
        return Topology.CONTAINER_SERVICE
    return Topology.SINGLE_VM


def instance_size(topology: Topology, provider: CloudProvider) -> str:
    if topology == Topology.SERVERLESS:
        return "lambda"
    if topology == Topology.STATIC_SITE:
        return "static-hosting"
    return INSTANCE_SIZES.get((topology, provider), FALLBACK_SIZE)


def estimate_cost(topology: Topology, provider: CloudProvider) -> float:
    if (topology, provider) in COSTS:
        return COSTS[(topology, provider)]
    return TOPOLOGY_COSTS.get(topology, FALLBACK_COST)


def format_cost(cost: float) -> str:
    return f"${cost:.2f}/month"


def justify(topology: Topology, app_type: AppType, cost: float) -> str:
    return JUSTIFICATIONS[topology].format(app=app_type.value, cost=format_cost(cost))
