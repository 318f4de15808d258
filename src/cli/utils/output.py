"""Output formatting for CLI commands."""
from __future__ import annotations

import json
from typing import Any

import click


def format_output(data: Any, fmt: str = "text") -> str:
    """Render a result dict as JSON or as ``key: value`` lines."""
    if fmt == "json":
        return json.dumps(data, indent=2, ensure_ascii=False)
    if not isinstance(data, dict):
        return str(data)
    lines = []
    for key, value in data.items():
        if isinstance(value, str) and "\n" in value:
            lines.append(f"{key}:")
            lines.extend(f"  {line}" for line in value.splitlines())
        elif isinstance(value, (list, dict)):
            lines.append(f"{key}: {json.dumps(value, ensure_ascii=False)}")
        else:
            lines.append(f"{key}: {value}")
    return "\n".join(lines)


def print_success(message: str) -> None:
    click.secho(f"OK {message}", fg="green")


def print_error(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)


def print_info(message: str) -> None:
    click.secho(message, fg="cyan")
