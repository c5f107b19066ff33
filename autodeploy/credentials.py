"""
Read-only access to the cloud credential file.

The file is JSON with one optional section per provider::

    {
      "aws": {"access_key_id": "...", "secret_access_key": "...", "region": "us-east-1"},
      "gcp": {"service_account_key": "{...}", "project_id": "my-project"},
      "azure": {"client_id": "...", "client_secret": "...", "tenant_id": "...", "subscription_id": "..."},
      "digitalocean": {"token": "..."}
    }

Values only ever travel into the environment of a terraform subprocess.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import CredentialMissing
from .generator.render import default_region
from .nlp.schema import CloudProvider

logger = logging.getLogger(__name__)


class _Section(BaseModel):
    model_config = ConfigDict(extra="ignore")


class AwsCredentials(_Section):
    access_key_id: str = Field(min_length=1)
    secret_access_key: str = Field(min_length=1)
    region: Optional[str] = None
    session_token: Optional[str] = None


class GcpCredentials(_Section):
    service_account_key: str = Field(min_length=1)
    project_id: str = Field(min_length=1)
    region: Optional[str] = None


class AzureCredentials(_Section):
    client_id: str = Field(min_length=1)
    client_secret: str = Field(min_length=1)
    tenant_id: str = Field(min_length=1)
    subscription_id: str = Field(min_length=1)


class DigitalOceanCredentials(_Section):
    token: str = Field(min_length=1)
    region: Optional[str] = None


SECTIONS: Dict[CloudProvider, Type[_Section]] = {
    CloudProvider.AWS: AwsCredentials,
    CloudProvider.GCP: GcpCredentials,
    CloudProvider.AZURE: AzureCredentials,
    CloudProvider.DIGITALOCEAN: DigitalOceanCredentials,
}


class CredentialStore:
    """Credential records keyed by provider, loaded from an explicit path."""

    def __init__(self, records: Optional[Dict[CloudProvider, _Section]] = None, path: Optional[Path] = None):
        self.records = dict(records or {})
        self.path = path

    @classmethod
    def load(cls, path: Path) -> "CredentialStore":
        """
        Load the credential file. A missing file yields an empty store;
        malformed sections are skipped with a warning that names the section only.
        """
        path = Path(path).expanduser()
        if not path.is_file():
            logger.debug("No credential file at %s", path)
            return cls(path=path)
        try:
            data = json.loads(path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read credential file %s: %s", path, e.__class__.__name__)
            return cls(path=path)
        if not isinstance(data, dict):
            logger.warning("Credential file %s is not a JSON object", path)
            return cls(path=path)

        records: Dict[CloudProvider, _Section] = {}
        for provider, model in SECTIONS.items():
            section = data.get(provider.tag)
            if section is None:
                continue
            try:
                records[provider] = model.model_validate(section)
            except ValidationError as e:
                fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
                logger.warning("Ignoring invalid %s credentials (fields: %s)", provider.tag, ", ".join(fields))
        return cls(records, path=path)

    def configured_providers(self) -> List[CloudProvider]:
        return [p for p in SECTIONS if p in self.records]

    def setup_hint(self, provider: CloudProvider) -> str:
        if provider not in SECTIONS:
            return "Name a cloud provider in the description or pass --cloud-provider."
        fields = [name for name, f in SECTIONS[provider].model_fields.items() if f.is_required()]
        where = self.path or "the credential file"
        return f'Add a "{provider.tag}" section to {where} with: {", ".join(fields)}.'

    def require(self, provider: CloudProvider) -> _Section:
        record = self.records.get(provider)
        if record is None:
            raise CredentialMissing(provider.value, self.setup_hint(provider))
        return record

    def env_for(self, provider: CloudProvider) -> Dict[str, str]:
        """
        Environment variables the terraform provider reads for authentication.

        Raises:
            CredentialMissing: there is no record for ``provider``
        """
        record = self.require(provider)
        env: Dict[str, str] = {}
        if isinstance(record, AwsCredentials):
            env["AWS_ACCESS_KEY_ID"] = record.access_key_id
            env["AWS_SECRET_ACCESS_KEY"] = record.secret_access_key
            if record.region:
                env["AWS_DEFAULT_REGION"] = record.region
            if record.session_token:
                env["AWS_SESSION_TOKEN"] = record.session_token
        elif isinstance(record, GcpCredentials):
            env["GOOGLE_CREDENTIALS"] = record.service_account_key
            env["GOOGLE_PROJECT"] = record.project_id
            if record.region:
                env["GOOGLE_REGION"] = record.region
        elif isinstance(record, AzureCredentials):
            env["ARM_CLIENT_ID"] = record.client_id
            env["ARM_CLIENT_SECRET"] = record.client_secret
            env["ARM_TENANT_ID"] = record.tenant_id
            env["ARM_SUBSCRIPTION_ID"] = record.subscription_id
        elif isinstance(record, DigitalOceanCredentials):
            env["DIGITALOCEAN_TOKEN"] = record.token
        return env

    def plan_vars(self, provider: CloudProvider) -> Dict[str, str]:
        """``-var`` overrides passed to ``terraform plan``."""
        record = self.require(provider)
        region = getattr(record, "region", None) or default_region(provider)
        if isinstance(record, GcpCredentials):
            return {"project_id": record.project_id, "region": region, "zone": f"{region}-a"}
        if isinstance(record, (AwsCredentials, DigitalOceanCredentials)):
            return {"region": region}
        return {}
