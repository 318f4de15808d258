"""Store access and error handling for CLI commands."""
from __future__ import annotations

import functools
import sys
from typing import Any, Callable

from scene_codegen.errors import SceneCodegenError
from scene_codegen.store import JsonFileSceneStore

from cli.utils.config import CLIConfig
from cli.utils.output import print_error


def open_store(config: CLIConfig) -> JsonFileSceneStore:
    """The JSON store the CLI operates on. Exits if none is configured."""
    if not config.store_path:
        print_error("No scene store configured. Pass --store DIR or set SCENE_CODEGEN_STORE_PATH.")
        sys.exit(1)
    return JsonFileSceneStore(config.store_path)


def handle_scene_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Turn pipeline exceptions into an error message and exit code 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except SceneCodegenError as e:
            print_error(f"{e.message}: {e.details}" if e.details else e.message)
            sys.exit(1)

    return wrapper
