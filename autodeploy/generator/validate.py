import re
from typing import Any, Iterable, Mapping, Optional, Set

from ..nlp.schema import CloudProvider
from ..selector.plan import Resource
from .hcl import REFERENCE_PREFIXES
from .render import wrapper_inputs

VAR_REF = re.compile(r"(?<![\w.])var\.([A-Za-z_][A-Za-z0-9_-]*)")


def _strings(value: Any) -> Iterable[str]:
    if isinstance(value, str):
        yield value
    elif isinstance(value, Mapping):
        for v in value.values():
            yield from _strings(v)
    elif isinstance(value, (list, tuple)):
        for v in value:
            yield from _strings(v)


def referenced_variables(value: Any) -> Set[str]:
    """Variable names used by reference or template strings inside a value tree."""
    names: Set[str] = set()
    for s in _strings(value):
        if s.startswith(REFERENCE_PREFIXES) or s.startswith("${"):
            names.update(VAR_REF.findall(s))
    return names


def check_references(
    resources: Iterable[Resource],
    variables: Mapping[str, Any],
    provider: CloudProvider,
    outputs: Optional[Mapping[str, Any]] = None,
) -> Set[str]:
    """
    Return the ``var.`` names used by the graph (and outputs) that are neither
    declared variables nor wrapper inputs. An empty set means the graph is valid.
    """
    used: Set[str] = set()
    for resource in resources:
        used |= referenced_variables(resource.attributes)
    if outputs:
        used |= referenced_variables({k: v.get("value") for k, v in outputs.items() if isinstance(v, Mapping)})
    return used - set(variables) - wrapper_inputs(provider)
