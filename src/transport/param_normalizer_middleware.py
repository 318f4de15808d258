"""
Middleware that normalizes scene tool arguments before validation.

Code-generation agents send arguments in whatever shape their tool
runtime produces: sometimes wrapped in a ``{"parameters": {...}}``
envelope, usually in camelCase (``startLine``, ``oldString``). This
middleware unwraps the envelope and maps names to snake_case before
FastMCP/pydantic validation, so the tools accept every shape.
"""
import logging
import re
from dataclasses import is_dataclass, replace

from fastmcp.server.middleware import Middleware, MiddlewareContext

logger = logging.getLogger("scene-codegen-server")

ENVELOPE_KEY = "parameters"


def camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case, handling edge cases.

    Examples:
        startLine -> start_line
        sceneID -> scene_id
        already_snake -> already_snake
    """
    # Handle consecutive capitals (e.g., "sceneID" -> "scene_id")
    s1 = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)
    s2 = re.sub(r'([a-z\d])([A-Z])', r'\1_\2', s1)
    return s2.lower()


def unwrap_envelope(arguments: dict | None) -> dict | None:
    """Lift ``{"parameters": {...}}`` to the top level. Top-level keys win on conflict."""
    if not arguments or not isinstance(arguments.get(ENVELOPE_KEY), dict):
        return arguments
    unwrapped = dict(arguments[ENVELOPE_KEY])
    for key, value in arguments.items():
        if key != ENVELOPE_KEY:
            unwrapped[key] = value
    return unwrapped


def normalize_arguments(arguments: dict | None) -> dict | None:
    """Unwrap the envelope and normalize camelCase argument names to snake_case.

    When both camelCase and snake_case versions exist, snake_case takes precedence.
    """
    arguments = unwrap_envelope(arguments)
    if arguments is None:
        return None

    normalized = {}
    explicit_snake: set[str] = set()

    for key, value in arguments.items():
        snake_key = camel_to_snake(key)
        if snake_key != key and snake_key in explicit_snake:
            logger.debug(
                "Skipping camelCase '%s' as snake_case '%s' already provided",
                key, snake_key
            )
            continue
        if snake_key == key:
            explicit_snake.add(snake_key)
        normalized[snake_key] = value

    return normalized


def _with_arguments(message, arguments: dict):
    if hasattr(message, "model_copy"):
        return message.model_copy(update={"arguments": arguments})
    return replace(message, arguments=arguments)


class SceneArgumentMiddleware(Middleware):
    """
    Normalizes tool call arguments so both of these reach ``read_code`` identically:
        - read_code(parameters={"startLine": 10, "numLines": 20})
        - read_code(start_line=10, num_lines=20)
    """

    async def on_call_tool(self, context: MiddlewareContext, call_next):
        message = context.message

        # FastMCP passes the call params directly; older shapes nest them under ``params``.
        if hasattr(message, "arguments"):
            original_args = message.arguments
            normalized_args = normalize_arguments(original_args)
            if normalized_args != original_args:
                logger.debug(
                    "Normalized tool arguments: %s -> %s",
                    list((original_args or {}).keys()),
                    list((normalized_args or {}).keys()),
                )
                context = context.copy(message=_with_arguments(message, normalized_args))
        elif getattr(message, "params", None) is not None and hasattr(message.params, "arguments"):
            params = message.params
            original_args = params.arguments
            normalized_args = normalize_arguments(original_args)
            if normalized_args != original_args:
                new_params = _with_arguments(params, normalized_args)
                new_message = (
                    replace(message, params=new_params)
                    if is_dataclass(message)
                    else message.model_copy(update={"params": new_params})
                )
                context = context.copy(message=new_message)

        return await call_next(context)
