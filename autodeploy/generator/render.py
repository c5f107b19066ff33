"""
Renders a DeploymentPlan into provider.tf, main.tf, variables.tf and outputs.tf.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set

from ..nlp.schema import CloudProvider
from ..selector.plan import DeploymentPlan, Resource
from .bootstrap import BOOTSTRAP_KEYS, normalize_bootstrap
from .hcl import Emitter, Expression, labeled_block, quote

logger = logging.getLogger(__name__)

FILE_NAMES = ("provider.tf", "main.tf", "variables.tf", "outputs.tf")
HEADER = "# Generated by autodeploy. Edits are overwritten on the next render.\n"
SUFFIX_FORMAT = "%Y%m%d-%H%M%S"
BASE64_RE = re.compile(r"^[A-Za-z0-9+/]+={0,2}$")


@dataclass(frozen=True)
class ProviderWrapper:
    name: str
    source: str
    version: str
    default_region: str
    config: Dict[str, Any] = field(default_factory=dict)
    inputs: Dict[str, Dict[str, str]] = field(default_factory=dict)


WRAPPERS: Dict[CloudProvider, ProviderWrapper] = {
    CloudProvider.AWS: ProviderWrapper(
        "aws", "hashicorp/aws", "~> 5.0", "us-east-1",
        config={"region": "var.region"},
    ),
    CloudProvider.GCP: ProviderWrapper(
        "google", "hashicorp/google", "~> 4.0", "us-central1",
        config={"project": "var.project_id", "region": "var.region", "zone": "var.zone"},
        inputs={
            "project_id": {"type": "string", "description": "GCP project ID"},
            "zone": {"type": "string", "description": "GCP zone", "default": "us-central1-a"},
        },
    ),
    CloudProvider.AZURE: ProviderWrapper(
        "azurerm", "hashicorp/azurerm", "~> 3.0", "eastus",
        config={"features": {}},
    ),
    CloudProvider.DIGITALOCEAN: ProviderWrapper(
        "digitalocean", "digitalocean/digitalocean", "~> 2.0", "nyc3",
    ),
}

COMMON_INPUTS = ("repository_reference", "region")


def default_region(provider: CloudProvider) -> Optional[str]:
    wrapper = WRAPPERS.get(provider)
    return wrapper.default_region if wrapper else None


def wrapper_inputs(provider: CloudProvider) -> Set[str]:
    """Variables the wrapper always declares for ``provider``."""
    wrapper = WRAPPERS.get(provider)
    return set(COMMON_INPUTS) | set(wrapper.inputs if wrapper else ())


def is_firewall(resource_type: str) -> bool:
    return "firewall" in resource_type or "security_group" in resource_type


def _prepare_attributes(resource: Resource, emitter: Emitter, suffix: str) -> Dict[str, Any]:
    attrs = dict(resource.attributes)
    for key in BOOTSTRAP_KEYS & set(attrs):
        script = attrs[key]
        if not isinstance(script, str) or emitter.is_reference(script):
            continue
        script = normalize_bootstrap(script)
        if key == "custom_data" and resource.type.startswith("azurerm_") and not BASE64_RE.match(script):
            attrs[key] = Expression(f"base64encode({quote(script)})")
        else:
            attrs[key] = script
    name = attrs.get("name")
    if is_firewall(resource.type) and isinstance(name, str) and not emitter.is_reference(name):
        attrs["name"] = f"{name}-{suffix}"
    return attrs


def render_provider(provider: CloudProvider) -> str:
    wrapper = WRAPPERS.get(provider)
    if wrapper is None:
        return HEADER + "terraform {}\n"
    emitter = Emitter()
    # required_providers entries are object attributes, not blocks
    entry = emitter.object({"source": wrapper.source, "version": wrapper.version}, 2, wrapper.name)
    lines = ["terraform {", "  required_providers {", f"    {wrapper.name} = {entry}", "  }", "}"]
    return HEADER + "\n".join(lines) + "\n\n" + labeled_block("provider", [wrapper.name], wrapper.config, emitter)


def render_main(plan: DeploymentPlan, generated_at: datetime) -> str:
    emitter = Emitter(r.address for r in plan.resource_graph)
    suffix = generated_at.strftime(SUFFIX_FORMAT)
    blocks = [
        labeled_block("resource", [r.type, r.name], _prepare_attributes(r, emitter, suffix), emitter)
        for r in plan.resource_graph
    ]
    return HEADER + "\n".join(blocks)


def _variable_block(name: str, spec: Mapping[str, Any], emitter: Emitter) -> str:
    body: Dict[str, Any] = {}
    if isinstance(spec.get("type"), str):
        body["type"] = Expression(spec["type"])
    if isinstance(spec.get("description"), str):
        body["description"] = spec["description"]
    if isinstance(spec.get("default"), str):
        body["default"] = spec["default"]
    return labeled_block("variable", [name], body, emitter)


def render_variables(plan: DeploymentPlan, repository_reference: str) -> str:
    emitter = Emitter()
    wrapper = WRAPPERS.get(plan.provider)
    declared: Dict[str, Mapping[str, Any]] = {
        "repository_reference": {
            "type": "string",
            "description": "Repository to deploy",
            "default": repository_reference,
        },
        "region": {"type": "string", "description": "Cloud region"},
    }
    if wrapper is not None:
        declared["region"] = dict(declared["region"], default=wrapper.default_region)
        declared.update(wrapper.inputs)
    for name, spec in plan.variables.items():
        if name in declared:
            continue
        if not isinstance(spec, Mapping):
            logger.debug("Skipping variable %s with non-object definition", name)
            continue
        declared[name] = spec
    return HEADER + "\n".join(_variable_block(n, s, emitter) for n, s in declared.items())


def render_outputs(plan: DeploymentPlan) -> str:
    emitter = Emitter(r.address for r in plan.resource_graph)
    blocks: List[str] = []
    for name, spec in plan.outputs.items():
        value = spec.get("value") if isinstance(spec, Mapping) else None
        if not isinstance(value, str):
            logger.debug("Skipping output %s without a string value", name)
            continue
        body: Dict[str, Any] = {"value": value}
        if isinstance(spec.get("description"), str):
            body["description"] = spec["description"]
        blocks.append(labeled_block("output", [name], body, emitter))
    return HEADER + "\n".join(blocks)


def render(
    plan: DeploymentPlan,
    repository_reference: str,
    generated_at: Optional[datetime] = None,
) -> Dict[str, str]:
    """
    Produce the four Terraform files for ``plan``.

    Returns:
        Mapping of file name to text, always with all four files

    Raises:
        SerializationError: an attribute value has no HCL representation
    """
    generated_at = generated_at or datetime.now()
    files = {
        "provider.tf": render_provider(plan.provider),
        "main.tf": render_main(plan, generated_at),
        "variables.tf": render_variables(plan, repository_reference),
        "outputs.tf": render_outputs(plan),
    }
    logger.debug("Rendered %d resources for %s", len(plan.resource_graph), plan.provider.value)
    return files


def write_files(files: Mapping[str, str], directory: Path) -> List[Path]:
    written: List[Path] = []
    for name in FILE_NAMES:
        path = directory / name
        path.write_text(files[name])
        written.append(path)
    return written
