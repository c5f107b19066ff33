"""
Turns text-generation output into validated requirement and draft structures.
"""

import json
import logging
from typing import Any, Dict

from pydantic import ValidationError

from ..errors import ExtractionFailure
from ..selector.plan import DraftConfig, Resource, Topology
from .prompts import draft_prompt, requirements_prompt
from .providers import TextGenerator
from .schema import CloudProvider, DraftPayload, RequirementModel, RequirementsPayload

logger = logging.getLogger(__name__)


def extract_json_span(text: str) -> str:
    """
    Strip a Markdown code fence and return the outermost ``{...}`` span.

    Raises:
        ExtractionFailure: the text contains no JSON object span
    """
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned[3:]
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        raise ExtractionFailure("Response contained no JSON object", raw=text)
    return cleaned[start:end + 1]


def _load(text: str) -> Dict[str, Any]:
    span = extract_json_span(text)
    try:
        data = json.loads(span)
    except json.JSONDecodeError as e:
        raise ExtractionFailure(f"Response is not valid JSON: {e}", raw=text)
    if not isinstance(data, dict):
        raise ExtractionFailure("Response JSON is not an object", raw=text)
    return data


def parse_requirements(text: str) -> RequirementModel:
    data = _load(text)
    try:
        payload = RequirementsPayload.model_validate(data)
    except ValidationError as e:
        raise ExtractionFailure(f"Requirements failed schema validation: {e.error_count()} error(s)", raw=text) from e
    return payload.to_model()


def parse_draft(text: str) -> DraftConfig:
    data = _load(text)
    try:
        payload = DraftPayload.model_validate(data)
    except ValidationError as e:
        raise ExtractionFailure(f"Drafted configuration failed schema validation: {e.error_count()} error(s)", raw=text) from e
    return DraftConfig(
        resources=tuple(Resource(r.resource_type, r.name, dict(r.config)) for r in payload.resources),
        variables=dict(payload.variables),
        outputs=dict(payload.outputs),
        provider=payload.provider,
    )


def extract_requirements(description: str, generator: TextGenerator) -> RequirementModel:
    """
    Ask the generator for structured requirements and validate them.

    Raises:
        ExtractionFailure: no JSON span, invalid JSON, or a schema violation
    """
    logger.info("Extracting requirements with %s provider", generator.name)
    model = parse_requirements(generator.generate(requirements_prompt(description)))
    logger.debug("Extracted requirements: %s", model.to_dict(redact=True))
    return model


def draft_config(
    description: str,
    provider: CloudProvider,
    topology: Topology,
    generator: TextGenerator,
) -> DraftConfig:
    """Ask the generator to draft a resource graph for ``provider`` and ``topology``."""
    logger.info("Drafting %s configuration for %s with %s provider", topology.value, provider.value, generator.name)
    prompt = draft_prompt(description, provider.value, provider.tag, topology.value)
    draft = parse_draft(generator.generate(prompt))
    logger.info("Drafted %d resources", len(draft.resources))
    return draft
