from .extract import draft_config, extract_json_span, extract_requirements
from .schema import AppType, CloudProvider, DatabaseType, RequirementModel, ScalingMode

__all__ = [
    "AppType",
    "CloudProvider",
    "DatabaseType",
    "RequirementModel",
    "ScalingMode",
    "draft_config",
    "extract_json_span",
    "extract_requirements",
]
