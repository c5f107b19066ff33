"""
Runtime configuration.

Settings are read once from the environment and then passed explicitly to
whatever needs them; nothing in the package reads configuration globals.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional


DEFAULT_CREDENTIALS_PATH = Path("~/.autodeploy/credentials.json")


@dataclass(frozen=True)
class Settings:
    output_root: Path = Path("terraform-output")
    credentials_path: Path = DEFAULT_CREDENTIALS_PATH
    terraform_binary: str = "terraform"
    nlp_provider: str = "mock"
    nlp_model: Optional[str] = None
    gemini_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    nlp_timeout_s: float = 30.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Returns:
            Settings with unset variables left at their defaults
        """
        env = os.environ if environ is None else environ
        timeout = env.get("AUTODEPLOY_NLP_TIMEOUT")
        return cls(
            output_root=Path(env.get("AUTODEPLOY_OUTPUT_DIR", "terraform-output")),
            credentials_path=Path(env.get("AUTODEPLOY_CREDENTIALS", str(DEFAULT_CREDENTIALS_PATH))),
            terraform_binary=env.get("AUTODEPLOY_TERRAFORM_BIN", "terraform"),
            nlp_provider=env.get("AUTODEPLOY_NLP_PROVIDER", "mock").lower(),
            nlp_model=env.get("AUTODEPLOY_NLP_MODEL") or None,
            gemini_api_key=env.get("GEMINI_API_KEY") or None,
            openai_api_key=env.get("OPENAI_API_KEY") or None,
            openai_base_url=env.get("OPENAI_BASE_URL", "https://api.openai.com/v1"),
            nlp_timeout_s=float(timeout) if timeout else 30.0,
        )

    def with_overrides(self, **changes) -> "Settings":
        """Return a copy with the non-None keyword arguments applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
