"""
Requirement vocabulary and JSON schemas for extraction-service responses.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing_extensions import Annotated

from ..envman.redact import redact_dict


def _norm(text: str) -> str:
    return "".join(ch for ch in text.lower() if ch.isalnum())


class AppType(str, Enum):
    FLASK = "Flask"
    DJANGO = "Django"
    FASTAPI = "FastAPI"
    NODEJS = "NodeJS"
    REACT = "React"
    NEXTJS = "NextJS"
    EXPRESS = "Express"
    RAILS = "Rails"
    SPRING = "Spring"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, text: Optional[str]) -> "AppType":
        if not text:
            return cls.UNKNOWN
        key = _norm(text)
        for member in cls:
            if _norm(member.value) == key:
                return member
        return _APP_ALIASES.get(key, cls.UNKNOWN)


_APP_ALIASES = {
    "node": AppType.NODEJS,
    "next": AppType.NEXTJS,
    "reactjs": AppType.REACT,
    "expressjs": AppType.EXPRESS,
    "rubyonrails": AppType.RAILS,
    "springboot": AppType.SPRING,
}


class CloudProvider(str, Enum):
    AWS = "AWS"
    GCP = "GCP"
    AZURE = "Azure"
    DIGITALOCEAN = "DigitalOcean"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, text: Optional[str]) -> "CloudProvider":
        if not text:
            return cls.UNKNOWN
        return _PROVIDER_ALIASES.get(_norm(text), cls.UNKNOWN)

    @property
    def tag(self) -> str:
        """Lower-case short name used for credential records and CLI options."""
        return self.value.lower()


_PROVIDER_ALIASES = {
    "aws": CloudProvider.AWS,
    "amazon": CloudProvider.AWS,
    "amazonwebservices": CloudProvider.AWS,
    "gcp": CloudProvider.GCP,
    "google": CloudProvider.GCP,
    "googlecloud": CloudProvider.GCP,
    "azure": CloudProvider.AZURE,
    "microsoftazure": CloudProvider.AZURE,
    "digitalocean": CloudProvider.DIGITALOCEAN,
    "do": CloudProvider.DIGITALOCEAN,
}


class ScalingMode(str, Enum):
    SINGLE = "Single"
    AUTOSCALE = "AutoScale"
    LOADBALANCED = "LoadBalanced"
    SERVERLESS = "Serverless"

    @classmethod
    def parse(cls, text: Optional[str]) -> "ScalingMode":
        key = _norm(text or "")
        if key in ("autoscale", "autoscaling"):
            return cls.AUTOSCALE
        if key in ("loadbalanced", "loadbalancer"):
            return cls.LOADBALANCED
        if key == "serverless":
            return cls.SERVERLESS
        return cls.SINGLE


class DatabaseType(str, Enum):
    POSTGRESQL = "PostgreSQL"
    MYSQL = "MySQL"
    MONGODB = "MongoDB"
    REDIS = "Redis"
    SQLITE = "SQLite"

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional["DatabaseType"]:
        key = _norm(text or "")
        if key == "postgres":
            return cls.POSTGRESQL
        if key == "mongo":
            return cls.MONGODB
        for member in cls:
            if _norm(member.value) == key:
                return member
        return None


@dataclass(frozen=True)
class RequirementModel:
    """What the operator asked for, as extracted from the description."""
    cloud_provider: CloudProvider = CloudProvider.UNKNOWN
    application_type: Optional[AppType] = None
    scaling_mode: ScalingMode = ScalingMode.SINGLE
    databases: FrozenSet[DatabaseType] = frozenset()
    ports: Tuple[int, ...] = (80, 443)
    ssl_required: bool = False
    custom_domain: Optional[str] = None
    env_vars: Mapping[str, str] = field(default_factory=dict)

    def with_provider(self, provider: CloudProvider) -> "RequirementModel":
        """Return a copy where an explicit operator choice replaces the extracted provider."""
        return replace(self, cloud_provider=provider)

    def to_dict(self, redact: bool = True) -> Dict[str, Any]:
        return {
            "cloud_provider": self.cloud_provider.value,
            "application_type": self.application_type.value if self.application_type else None,
            "scaling_mode": self.scaling_mode.value,
            "databases": sorted(db.value for db in self.databases),
            "ports": list(self.ports),
            "ssl_required": self.ssl_required,
            "custom_domain": self.custom_domain,
            "env_vars": redact_dict(dict(self.env_vars)) if redact else dict(self.env_vars),
        }


# ---------------------------------------------------------------------------
# Response schemas for the extraction service
# ---------------------------------------------------------------------------

Port = Annotated[int, Field(ge=1, le=65535)]
Scalar = Union[str, int, float, bool]


class RequirementsPayload(BaseModel):
    """JSON object returned by the requirement extraction prompt."""
    model_config = ConfigDict(extra="ignore")

    application_type: Optional[str]
    scaling_requirements: str
    database_requirements: List[str]
    cloud_provider: str
    port_requirements: List[Port]
    ssl_required: bool
    custom_domain: Optional[str] = None
    environment_variables: Dict[str, Scalar] = Field(default_factory=dict)

    def to_model(self) -> RequirementModel:
        app_type = AppType.parse(self.application_type) if self.application_type else None
        databases = frozenset(
            db for db in (DatabaseType.parse(d) for d in self.database_requirements) if db is not None
        )
        domain = self.custom_domain
        if domain is not None and domain.strip().lower() in ("", "null", "none"):
            domain = None
        return RequirementModel(
            cloud_provider=CloudProvider.parse(self.cloud_provider),
            application_type=app_type,
            scaling_mode=ScalingMode.parse(self.scaling_requirements),
            databases=databases,
            ports=tuple(self.port_requirements),
            ssl_required=self.ssl_required,
            custom_domain=domain,
            env_vars={k: _stringify(v) for k, v in self.environment_variables.items()},
        )


def _stringify(value: Scalar) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ResourcePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    resource_type: str = Field(min_length=1, validation_alias=AliasChoices("resource_type", "type"))
    name: str = Field(min_length=1)
    config: Dict[str, Any] = Field(default_factory=dict, validation_alias=AliasChoices("config", "attributes"))


class DraftPayload(BaseModel):
    """JSON object returned by the configuration drafting prompt."""
    model_config = ConfigDict(extra="ignore")

    provider: Optional[str] = None
    resources: List[ResourcePayload]
    variables: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    outputs: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    @field_validator("variables", mode="before")
    @classmethod
    def _variables_shorthand(cls, value):
        # {"region": "AWS region"} is shorthand for a described variable
        if isinstance(value, dict):
            return {k: ({"description": v} if isinstance(v, str) else v) for k, v in value.items()}
        return value

    @field_validator("outputs", mode="before")
    @classmethod
    def _outputs_shorthand(cls, value):
        if isinstance(value, dict):
            return {k: ({"value": v} if isinstance(v, str) else v) for k, v in value.items()}
        return value
