from __future__ import annotations

from typing import Dict, Mapping

MASK = "[REDACTED]"


def redact_dict(d: Mapping[str, str]) -> Dict[str, str]:
    return {k: MASK for k in d.keys()}


def redact_values(text: str, secrets: Mapping[str, str]) -> str:
    """Mask every occurrence of the given secret values inside free text."""
    for value in secrets.values():
        if value and len(value) >= 4:
            text = text.replace(value, MASK)
    return text
