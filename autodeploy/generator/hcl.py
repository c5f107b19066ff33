"""
Recursive emitter from a generic value tree to HCL text.

Values are str, int, float, bool, None, lists and dicts with string keys.
Anything else raises ``SerializationError`` naming the attribute path.
"""

import math
import re
from typing import Any, Iterable, List, Mapping

from ..errors import SerializationError

REFERENCE_PREFIXES = ("var.",)
# data sources only in their full data.<type>.<name>.<attr> form
DATA_REFERENCE = re.compile(r"^data\.[A-Za-z_][A-Za-z0-9_-]*\.[A-Za-z_][A-Za-z0-9_-]*\.\S+$")

# Maps under these keys are object attributes (key = { ... }), not nested blocks.
ATTRIBUTE_MAP_KEYS = frozenset({"tags", "labels", "metadata", "triggers"})

IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")
INDENT = "  "


class Expression(str):
    """A string emitted verbatim, e.g. a function call built by the renderer."""


def _escape_chars(s: str) -> str:
    return (
        s.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )


def escape_string(s: str) -> str:
    """Escape a literal so HCL reads back exactly ``s`` (no interpolation)."""
    return _escape_chars(s).replace("${", "$${").replace("%{", "%%{")


def quote(s: str) -> str:
    return f'"{escape_string(s)}"'


def _object_key(key: Any, path: str) -> str:
    if not isinstance(key, str):
        raise SerializationError(f"non-string key {key!r}", path)
    return key if IDENTIFIER.match(key) else quote(key)


class Emitter:
    """
    Emits attribute bodies. ``addresses`` are ``type.name`` pairs of the
    resources in the same graph; strings starting with one of them are
    references and are written unquoted.
    """

    def __init__(self, addresses: Iterable[str] = ()):
        self.prefixes = REFERENCE_PREFIXES + tuple(f"{a}." for a in addresses)

    def is_reference(self, s: str) -> bool:
        if any(ch.isspace() for ch in s):
            return False
        return s.startswith(self.prefixes) or bool(DATA_REFERENCE.match(s))

    def scalar(self, value: Any, path: str) -> str:
        if isinstance(value, Expression):
            return str(value)
        if isinstance(value, bool):
            return "true" if value else "false"
        if value is None:
            return "null"
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            if not math.isfinite(value):
                raise SerializationError(f"non-finite number {value!r}", path)
            return repr(value)
        if isinstance(value, str):
            if self.is_reference(value):
                return value
            if value.startswith("${"):
                return f'"{_escape_chars(value)}"'
            return quote(value)
        raise SerializationError(f"unsupported value type {type(value).__name__}", path)

    def inline(self, value: Any, indent: int, path: str) -> str:
        """Expression form of a value: scalars, flat lists and object literals."""
        if isinstance(value, Mapping):
            return self.object(value, indent, path)
        if isinstance(value, (list, tuple)):
            return self.flat_list(value, path)
        return self.scalar(value, path)

    def flat_list(self, items, path: str) -> str:
        parts = []
        for i, item in enumerate(items):
            if isinstance(item, (list, tuple, Mapping)):
                raise SerializationError("mixed or nested list", f"{path}[{i}]")
            parts.append(self.scalar(item, f"{path}[{i}]"))
        return f"[{', '.join(parts)}]"

    def object(self, mapping: Mapping, indent: int, path: str) -> str:
        if not mapping:
            return "{}"
        pad = INDENT * (indent + 1)
        lines = ["{"]
        for key, value in mapping.items():
            sub = f"{path}.{key}"
            lines.append(f"{pad}{_object_key(key, sub)} = {self.inline(value, indent + 1, sub)}")
        lines.append(f"{INDENT * indent}}}")
        return "\n".join(lines)

    def attribute(self, key: Any, value: Any, indent: int, path: str) -> List[str]:
        sub = f"{path}.{key}" if path else str(key)
        if not isinstance(key, str) or not IDENTIFIER.match(key):
            raise SerializationError(f"invalid attribute or block name {key!r}", sub)
        pad = INDENT * indent

        if isinstance(value, Mapping):
            if key in ATTRIBUTE_MAP_KEYS:
                return [f"{pad}{key} = {self.object(value, indent, sub)}"]
            return self.block(key, value, indent, sub)

        if isinstance(value, (list, tuple)):
            if not value:
                return [f"{pad}{key} = []"]
            if all(isinstance(item, Mapping) for item in value):
                lines: List[str] = []
                for i, item in enumerate(value):
                    lines += self.block(key, item, indent, f"{sub}[{i}]")
                return lines
            return [f"{pad}{key} = {self.flat_list(value, sub)}"]

        return [f"{pad}{key} = {self.scalar(value, sub)}"]

    def body(self, mapping: Mapping, indent: int, path: str) -> List[str]:
        lines: List[str] = []
        for key, value in mapping.items():
            lines += self.attribute(key, value, indent, path)
        return lines

    def block(self, header: str, mapping: Mapping, indent: int, path: str) -> List[str]:
        pad = INDENT * indent
        inner = self.body(mapping, indent + 1, path)
        if not inner:
            return [f"{pad}{header} {{}}"]
        return [f"{pad}{header} {{"] + inner + [f"{pad}}}"]


def labeled_block(kind: str, labels: Iterable[str], mapping: Mapping, emitter: Emitter) -> str:
    """Top-level block such as ``resource "aws_instance" "app" { ... }``."""
    labels = list(labels)
    for label in labels:
        if not IDENTIFIER.match(label):
            raise SerializationError(f"invalid {kind} label {label!r}", ".".join(labels))
    header = " ".join([kind] + [f'"{label}"' for label in labels])
    return "\n".join(emitter.block(header, mapping, 0, ".".join(labels))) + "\n"
