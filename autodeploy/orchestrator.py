"""
End-to-end pipeline: description + repository -> plan -> provisioned deployment.
"""

import logging
import tempfile
from dataclasses import dataclass
from typing import Optional

from .analyzer import RepositoryProfile, analyze
from .analyzer.fetcher import fetch_repository, is_remote
from .credentials import CredentialStore
from .nlp.extract import draft_config, extract_requirements
from .nlp.providers import TextGenerator, get_provider
from .nlp.schema import CloudProvider, RequirementModel
from .provision import provision
from .selector.plan import DeploymentPlan, DeploymentResult
from .selector.select import build_plan, decide
from .settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlannedDeployment:
    requirements: RequirementModel
    profile: RepositoryProfile
    plan: DeploymentPlan
    repository_reference: str


def plan_deployment(
    description: str,
    repository: str,
    settings: Settings,
    cloud_provider: Optional[CloudProvider] = None,
    draft: bool = False,
    generator: Optional[TextGenerator] = None,
) -> PlannedDeployment:
    """
    Extract requirements, analyze the repository and build a deployment plan.

    An explicit ``cloud_provider`` replaces whatever the description named.
    """
    generator = generator or get_provider(settings)
    requirements = extract_requirements(description, generator)
    if cloud_provider is not None and cloud_provider != CloudProvider.UNKNOWN:
        requirements = requirements.with_provider(cloud_provider)
    if requirements.cloud_provider == CloudProvider.UNKNOWN:
        logger.warning("No cloud provider named; the plan will carry provider Unknown")

    if not is_remote(repository):
        logger.warning("Repository %s is a local path; provisioned hosts cannot clone it", repository)

    with tempfile.TemporaryDirectory(prefix="autodeploy-") as workspace:
        profile = analyze(fetch_repository(repository, workspace))

    drafted = None
    if draft:
        topology = decide(requirements, profile).topology
        drafted = draft_config(description, requirements.cloud_provider, topology, generator)

    plan = build_plan(requirements, profile, drafted, repository_reference=repository)
    logger.info("Plan: %s on %s (%s)", plan.topology.value, plan.provider.value, plan.instance_size)
    return PlannedDeployment(requirements, profile, plan, repository)


def deploy(
    description: str,
    repository: str,
    settings: Settings,
    cloud_provider: Optional[CloudProvider] = None,
    dry_run: bool = False,
    draft: bool = False,
    generator: Optional[TextGenerator] = None,
    credentials: Optional[CredentialStore] = None,
) -> DeploymentResult:
    """Run the full pipeline and return the deployment result."""
    planned = plan_deployment(description, repository, settings, cloud_provider, draft, generator)
    credentials = credentials or CredentialStore.load(settings.credentials_path)
    return provision(
        planned.plan,
        planned.repository_reference,
        dry_run,
        planned.plan.provider,
        settings,
        credentials,
    )
