"""Compile and apply per-line content transforms.

A snippet is resolved in order:
1. a preset name (exact match);
2. a Python expression evaluating to a one-argument callable,
   e.g. ``lambda line: line.strip().upper()``;
3. the body of ``def transform(line): ...``, e.g. ``return line[:3]``.
If all fail, the result carries the error from the body attempt.
"""

from __future__ import annotations

import ast
import logging
import textwrap

from ..models import CompiledTransform, TransformFn
from .presets import PRESETS
from .sandbox import FILENAME, check_tree, new_globals

logger = logging.getLogger(__name__)

OBJECT_PLACEHOLDER = "[object Object]"
_BODY_HEADER = "def transform(line):\n"


def _compile_as_expression(trimmed: str) -> TransformFn:
    tree = ast.parse(trimmed, filename=FILENAME, mode="eval")
    check_tree(tree)
    code = compile(tree, FILENAME, "eval")
    result = eval(code, new_globals())
    if not callable(result):
        raise TypeError("expression did not evaluate to a callable")
    return result


def _compile_as_body(trimmed: str) -> TransformFn:
    source = _BODY_HEADER + textwrap.indent(trimmed, "    ")
    tree = ast.parse(source, filename=FILENAME, mode="exec")
    check_tree(tree)
    namespace = new_globals()
    exec(compile(tree, FILENAME, "exec"), namespace)
    return namespace["transform"]


def _describe(exc: Exception) -> str:
    if isinstance(exc, SyntaxError):
        # Line numbers are reported relative to the snippet, not the wrapper.
        lineno = (exc.lineno or 1) - 1
        return f"{exc.msg} (line {max(1, lineno)})"
    return str(exc) or exc.__class__.__name__


def compile_content_transform(source: str | None) -> CompiledTransform:
    """Compile a snippet into a :class:`CompiledTransform`."""
    trimmed = (source or "").strip()
    if not trimmed:
        return CompiledTransform(source="")

    preset = PRESETS.get(trimmed)
    if preset is not None:
        return CompiledTransform(source=trimmed, fn=preset)

    try:
        return CompiledTransform(source=trimmed, fn=_compile_as_expression(trimmed))
    except Exception as expression_error:
        logger.debug("Transform is not a callable expression: %s", expression_error)

    try:
        return CompiledTransform(source=trimmed, fn=_compile_as_body(trimmed))
    except Exception as body_error:
        message = _describe(body_error)
        logger.warning("Content transform failed to compile: %s", message)
        return CompiledTransform(source=trimmed, fn=None, error=message)


def coerce_result(result: object, line: str) -> str:
    """Map a transform result to display text."""
    if isinstance(result, str):
        return result
    if result is None:
        return line
    if isinstance(result, (bool, int, float)):
        return str(result)
    return OBJECT_PLACEHOLDER


def apply_content_transform(line: str, compiled: CompiledTransform) -> str:
    """Apply a compiled transform; any failure yields the original line."""
    fn = compiled.fn
    if fn is None:
        return line
    try:
        result = fn(line)
    except Exception:
        return line
    return coerce_result(result, line)
