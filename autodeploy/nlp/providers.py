"""
Text-generation backends used for requirement extraction and config drafting.
"""

import json
import logging
import re
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from ..errors import ExtractionFailure
from ..settings import Settings
from .prompts import description_from

logger = logging.getLogger(__name__)


class TextGenerator(ABC):
    """Abstract base class for text-generation providers."""

    def __init__(self, model: Optional[str] = None, timeout_s: float = 30.0):
        self.model = model
        self.timeout_s = timeout_s
        self.name = self.__class__.__name__.replace("Provider", "").lower()

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """
        Send a prompt and return the raw completion text.

        Raises:
            ExtractionFailure: the service could not be reached or returned no text
        """


class MockProvider(TextGenerator):
    """Deterministic keyword matcher for tests and offline use."""

    def __init__(self, model: Optional[str] = None, timeout_s: float = 30.0):
        super().__init__(model, timeout_s)
        self.name = "mock"

    def generate(self, prompt: str) -> str:
        description = description_from(prompt)
        if description is None:
            raise ExtractionFailure("Mock provider received a prompt without a description")
        if prompt.startswith("Generate a Terraform configuration"):
            raise ExtractionFailure("Mock provider cannot draft configurations; use the built-in blueprint")
        result = self._requirements(description)
        logger.debug("Mock provider extracted: provider=%s app=%s scaling=%s",
                     result["cloud_provider"], result["application_type"], result["scaling_requirements"])
        return json.dumps(result)

    def _requirements(self, description: str) -> Dict[str, Any]:
        text = description.lower()

        # Extract cloud provider
        cloud = "Unknown"
        if any(word in text for word in ["aws", "amazon", "ec2"]):
            cloud = "AWS"
        elif any(word in text for word in ["gcp", "google cloud", "google"]):
            cloud = "GCP"
        elif any(word in text for word in ["azure", "microsoft"]):
            cloud = "Azure"
        elif any(word in text for word in ["digitalocean", "digital ocean", "droplet"]):
            cloud = "DigitalOcean"

        # Extract framework hints
        app_type = None
        for keyword, label in [
            ("django", "Django"),
            ("fastapi", "FastAPI"),
            ("flask", "Flask"),
            ("next.js", "NextJS"),
            ("nextjs", "NextJS"),
            ("react", "React"),
            ("express", "Express"),
            ("node", "NodeJS"),
            ("rails", "Rails"),
            ("spring", "Spring"),
        ]:
            if keyword in text:
                app_type = label
                break

        # Extract scaling hints
        scaling = "Single"
        if any(word in text for word in ["serverless", "lambda", "cloud function"]):
            scaling = "Serverless"
        elif any(word in text for word in ["load balanc", "load-balanc", "kubernetes", "k8s"]):
            scaling = "LoadBalanced"
        elif any(word in text for word in ["autoscal", "auto-scal", "auto scal"]):
            scaling = "AutoScale"

        databases: List[str] = []
        for keyword, label in [
            ("postgres", "PostgreSQL"),
            ("mysql", "MySQL"),
            ("mongo", "MongoDB"),
            ("redis", "Redis"),
            ("sqlite", "SQLite"),
        ]:
            if keyword in text:
                databases.append(label)

        ports = [int(m) for m in re.findall(r"port\s*:?\s*(\d{2,5})", text) if 0 < int(m) <= 65535]

        domain_match = re.search(r"domain\s*:?\s*([a-z0-9-]+(?:\.[a-z0-9-]+)*\.[a-z]{2,})", text)

        env_vars = dict(re.findall(r"\b([A-Z][A-Z0-9_]{2,})=(\S+)", description))

        return {
            "application_type": app_type,
            "scaling_requirements": scaling,
            "database_requirements": databases,
            "cloud_provider": cloud,
            "port_requirements": ports or [80, 443],
            "ssl_required": any(word in text for word in ["ssl", "https", "tls"]),
            "custom_domain": domain_match.group(1) if domain_match else None,
            "environment_variables": env_vars,
        }


class GeminiProvider(TextGenerator):
    """Google Gemini over the generateContent REST endpoint."""

    API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

    def __init__(self, model: Optional[str] = None, timeout_s: float = 30.0, api_key: Optional[str] = None):
        super().__init__(model or "gemini-2.5-flash", timeout_s)
        self.name = "gemini"
        self.api_key = api_key

    def generate(self, prompt: str) -> str:
        if not self.api_key:
            raise ExtractionFailure("GEMINI_API_KEY is not set")

        start_time = time.time()
        try:
            response = requests.post(
                self.API_URL.format(model=self.model),
                headers={"x-goog-api-key": self.api_key, "Content-Type": "application/json"},
                json={
                    "contents": [{"parts": [{"text": prompt}]}],
                    "generationConfig": {
                        "temperature": 0.1,
                        "topK": 32,
                        "topP": 1.0,
                        "maxOutputTokens": 2048,
                    },
                },
                timeout=self.timeout_s,
            )
        except requests.RequestException as e:
            raise ExtractionFailure(f"Gemini API call failed: {e}")

        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug("Gemini API call completed in %dms (status %s)", duration_ms, response.status_code)

        if response.status_code != 200:
            raise ExtractionFailure(f"Gemini API error {response.status_code}: {response.text[:300]}")
        try:
            return response.json()["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError):
            raise ExtractionFailure("Gemini response contained no text", raw=response.text)


class OpenAIProvider(TextGenerator):
    """OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        model: Optional[str] = None,
        timeout_s: float = 30.0,
        api_key: Optional[str] = None,
        base_url: str = "https://api.openai.com/v1",
    ):
        super().__init__(model or "gpt-4o-mini", timeout_s)
        self.name = "openai"
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    def generate(self, prompt: str) -> str:
        if not self.api_key:
            raise ExtractionFailure("OPENAI_API_KEY is not set")

        start_time = time.time()
        try:
            response = requests.post(
                f"{self.base_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.model,
                    "messages": [{"role": "user", "content": prompt}],
                    "temperature": 0.1,
                    "max_tokens": 2048,
                },
                timeout=self.timeout_s,
            )
        except requests.RequestException as e:
            raise ExtractionFailure(f"OpenAI API call failed: {e}")

        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug("OpenAI API call completed in %dms (status %s)", duration_ms, response.status_code)

        if response.status_code != 200:
            raise ExtractionFailure(f"OpenAI API error {response.status_code}: {response.text[:300]}")
        try:
            return response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            raise ExtractionFailure("OpenAI response contained no text", raw=response.text)


def get_provider(settings: Settings, provider_name: Optional[str] = None) -> TextGenerator:
    """Get text-generation provider instance."""
    name = (provider_name or settings.nlp_provider or "mock").lower()

    if name == "gemini":
        return GeminiProvider(settings.nlp_model, settings.nlp_timeout_s, api_key=settings.gemini_api_key)
    if name == "openai":
        return OpenAIProvider(
            settings.nlp_model, settings.nlp_timeout_s,
            api_key=settings.openai_api_key, base_url=settings.openai_base_url,
        )
    if name != "mock":
        logger.warning("Unknown provider: %s, using mock", name)
    return MockProvider(settings.nlp_model, settings.nlp_timeout_s)
