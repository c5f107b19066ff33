from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..nlp.schema import CloudProvider


class Topology(str, Enum):
    SINGLE_VM = "SingleVM"
    CONTAINER_SERVICE = "ContainerService"
    SERVERLESS = "Serverless"
    ORCHESTRATED = "Orchestrated"
    STATIC_SITE = "StaticSite"


@dataclass(frozen=True)
class Resource:
    type: str
    name: str
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def address(self) -> str:
        return f"{self.type}.{self.name}"


@dataclass(frozen=True)
class Decision:
    topology: Topology
    instance_size: str
    estimated_monthly_cost: float
    justification: str


@dataclass(frozen=True)
class DraftConfig:
    """Resource graph proposed by the text-generation service."""
    resources: Tuple[Resource, ...] = ()
    variables: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    outputs: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    provider: Optional[str] = None


@dataclass(frozen=True)
class DeploymentPlan:
    topology: Topology
    instance_size: str
    provider: CloudProvider
    resource_graph: Tuple[Resource, ...] = ()
    variables: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    outputs: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    estimated_monthly_cost: float = 0.0
    justification: str = ""
    drafted: bool = False
    app_port: Optional[int] = None

    def summary(self) -> Dict[str, Any]:
        return {
            "topology": self.topology.value,
            "provider": self.provider.value,
            "instance_size": self.instance_size,
            "estimated_monthly_cost": self.estimated_monthly_cost,
            "justification": self.justification,
            "resources": [r.address for r in self.resource_graph],
            "outputs": sorted(self.outputs),
            "drafted": self.drafted,
        }


@dataclass(frozen=True)
class DeploymentResult:
    endpoint_url: str
    topology_label: str
    public_ip: Optional[str] = None
    log_lines: Tuple[str, ...] = ()
    output_dir: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "endpoint_url": self.endpoint_url,
            "topology": self.topology_label,
            "public_ip": self.public_ip,
            "log_lines": list(self.log_lines),
            "output_dir": self.output_dir,
        }
