"""
Error taxonomy for the deployment pipeline.

Every failure surfaced to a caller is an ``AutodeployError`` subclass that
carries enough context (stage, provider, tool) to produce an actionable
message. ``Unknown`` classifications are values, not errors.
"""

from typing import Optional


class AutodeployError(Exception):
    """Base class for all pipeline failures."""


class ExtractionFailure(AutodeployError):
    """The text-generation service returned no usable structured response."""

    def __init__(self, message: str, raw: Optional[str] = None):
        super().__init__(message)
        self.raw = raw


class ToolingMissing(AutodeployError):
    """A required external binary is not on PATH."""

    def __init__(self, tool: str):
        super().__init__(
            f"{tool} is not installed or not on PATH. "
            f"Install {tool} to provision infrastructure (or use --dry-run)."
        )
        self.tool = tool


class CredentialMissing(AutodeployError):
    """No credential record exists for the target provider."""

    def __init__(self, provider: str, setup_hint: str):
        super().__init__(f"No credentials found for {provider}. {setup_hint}")
        self.provider = provider
        self.setup_hint = setup_hint


class SerializationError(AutodeployError):
    """A resource attribute value cannot be represented in HCL."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path


class ExternalProcessFailure(AutodeployError):
    """terraform exited non-zero at some lifecycle stage."""

    def __init__(self, stage: str, returncode: int, detail: str):
        super().__init__(f"terraform {stage} failed (exit {returncode}): {detail.strip()}")
        self.stage = stage
        self.returncode = returncode
        self.detail = detail


class FetchError(AutodeployError):
    """The source repository could not be checked out."""
