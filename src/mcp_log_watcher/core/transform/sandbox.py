"""Restricted namespace for user content transforms.

Snippets only see the line they are given, a small allowlist of builtins and
read-only ``json``/``re`` helpers. Imports, dunder names, private attributes
and frame or generator introspection attributes are rejected before
compilation. ``str.format`` is unavailable; f-strings are checked like any
other expression. This keeps snippets away from the watcher and state
objects; it does not bound CPU time.
"""

from __future__ import annotations

import ast
import builtins
import json
import re
from types import MappingProxyType, SimpleNamespace
from typing import Any

FILENAME = "<content-transform>"

_ALLOWED_BUILTINS = (
    "abs",
    "all",
    "any",
    "bool",
    "chr",
    "dict",
    "divmod",
    "enumerate",
    "filter",
    "float",
    "format",
    "frozenset",
    "hex",
    "int",
    "isinstance",
    "len",
    "list",
    "map",
    "max",
    "min",
    "oct",
    "ord",
    "range",
    "repr",
    "reversed",
    "round",
    "set",
    "slice",
    "sorted",
    "str",
    "sum",
    "tuple",
    "zip",
    "Exception",
    "IndexError",
    "KeyError",
    "TypeError",
    "ValueError",
)

SAFE_BUILTINS: MappingProxyType[str, Any] = MappingProxyType(
    {name: getattr(builtins, name) for name in _ALLOWED_BUILTINS}
)


# Introspection attributes of frames, code objects, generators, coroutines and
# tracebacks. A running generator reaches its caller frames through them.
_BLOCKED_ATTR_PREFIXES = ("f_", "co_", "gi_", "cr_", "ag_", "tb_")
# Format fields such as "{0.attr}" walk attributes the tree check never sees.
_BLOCKED_ATTRS = frozenset({"format", "format_map", "mro"})


class SandboxViolation(ValueError):
    """Raised when a snippet uses a construct the sandbox does not allow."""


def _helpers() -> dict[str, Any]:
    return {
        "json": SimpleNamespace(loads=json.loads, dumps=json.dumps),
        "re": SimpleNamespace(
            search=re.search,
            match=re.match,
            fullmatch=re.fullmatch,
            sub=re.sub,
            split=re.split,
            findall=re.findall,
            IGNORECASE=re.IGNORECASE,
        ),
    }


def new_globals() -> dict[str, Any]:
    """Fresh globals for one compiled snippet (never shared between snippets)."""
    namespace: dict[str, Any] = {"__builtins__": dict(SAFE_BUILTINS)}
    namespace.update(_helpers())
    return namespace


def check_tree(tree: ast.AST) -> None:
    """Reject imports, dunder names and private or introspection attributes."""
    for node in ast.walk(tree):
        if isinstance(node, (ast.Import, ast.ImportFrom)):
            raise SandboxViolation("imports are not allowed in content transforms")
        if isinstance(node, ast.Attribute) and _blocked_attr(node.attr):
            raise SandboxViolation(f"access to attribute '{node.attr}' is not allowed")
        if isinstance(node, ast.Name) and node.id.startswith("__"):
            raise SandboxViolation(f"access to name '{node.id}' is not allowed")


def _blocked_attr(name: str) -> bool:
    return name.startswith("_") or name.startswith(_BLOCKED_ATTR_PREFIXES) or name in _BLOCKED_ATTRS
