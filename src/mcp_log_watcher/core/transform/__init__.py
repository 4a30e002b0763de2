"""Per-line content transforms (presets + sandboxed user snippets)."""

from __future__ import annotations

from .compiler import (
    OBJECT_PLACEHOLDER,
    apply_content_transform,
    coerce_result,
    compile_content_transform,
)
from .presets import PRESETS, describe_presets
from .runner import TransformRunner
from .sandbox import SandboxViolation

__all__ = [
    "OBJECT_PLACEHOLDER",
    "PRESETS",
    "SandboxViolation",
    "TransformRunner",
    "apply_content_transform",
    "coerce_result",
    "compile_content_transform",
    "describe_presets",
]
