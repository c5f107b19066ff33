"""
Prompt templates for the text-generation service.

The operator's description is fenced with triple quotes so that offline
providers can recover it verbatim.
"""

import re
from typing import Optional

DESCRIPTION_RE = re.compile(r'Description: """(.*?)"""', re.S)

REQUIREMENTS_PROMPT = '''Analyze this deployment description and extract structured deployment requirements.

Description: """{description}"""

Respond with ONLY a JSON object (no markdown, no explanation) of this shape:

{{
  "application_type": "Flask|Django|FastAPI|NodeJS|React|NextJS|Express|Rails|Spring or null",
  "scaling_requirements": "Single|AutoScale|LoadBalanced|Serverless",
  "database_requirements": ["PostgreSQL", "MySQL", "MongoDB", "Redis", "SQLite"],
  "cloud_provider": "AWS|GCP|Azure|DigitalOcean|Unknown",
  "port_requirements": [80, 443],
  "ssl_required": false,
  "custom_domain": "example.com or null",
  "environment_variables": {{"NAME": "value"}}
}}

Rules:
- application_type: infer from framework keywords, null if none is mentioned
- scaling_requirements: "Single" unless auto-scaling, load balancing or serverless is mentioned
- database_requirements: only databases that are mentioned, [] if none
- cloud_provider: "Unknown" unless a provider is named; do not guess
- port_requirements: ports that are mentioned, otherwise [80, 443]
- ssl_required: true only if HTTPS, SSL or TLS is requested
- custom_domain: the domain if one is mentioned, otherwise null
- environment_variables: environment variables given in the description
'''

DRAFT_PROMPT = '''Generate a Terraform configuration for this deployment.

Description: """{description}"""
Cloud Provider: {provider}
Deployment Type: {topology}

Respond with ONLY a JSON object (no markdown, no explanation) with this structure:

{{
  "provider": "{provider_tag}",
  "resources": [
    {{"resource_type": "<terraform type>", "name": "<local name>", "config": {{"<attribute>": "<value>"}}}}
  ],
  "variables": {{"region": {{"type": "string", "description": "Deployment region"}}}},
  "outputs": {{"public_ip": {{"value": "<type>.<name>.<attribute>", "description": "Public IP"}}}}
}}

Requirements:
- One compute instance plus the firewall or security group it needs
- Nested blocks (ingress, egress, allow, network_interface) are lists of objects
- Keep the startup script short: install the runtime, clone the repository, start the app
- Reference other resources as "<type>.<name>.<attribute>" and variables as "var.<name>", never "${{...}}"
- Only reference variables that are declared under "variables", or var.region and var.repository_reference
- Output values must be unquoted resource references
'''


def requirements_prompt(description: str) -> str:
    return REQUIREMENTS_PROMPT.format(description=description.replace('"""', "'''"))


def draft_prompt(description: str, provider: str, provider_tag: str, topology: str) -> str:
    return DRAFT_PROMPT.format(
        description=description.replace('"""', "'''"),
        provider=provider,
        provider_tag=provider_tag,
        topology=topology,
    )


def description_from(prompt: str) -> Optional[str]:
    m = DESCRIPTION_RE.search(prompt)
    return m.group(1) if m else None
