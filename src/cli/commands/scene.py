"""Scene CLI commands."""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click

from scene_codegen.buffer import SceneBufferAccessor, write_code
from scene_codegen.component_author import LLMComponentAuthor
from scene_codegen.errors import SceneNotFoundError
from scene_codegen.state_machine import GenerationStateMachine
from scene_codegen.validator import validate_component

from cli.utils.config import get_config
from cli.utils.output import format_output, print_error, print_info, print_success
from cli.utils.store import handle_scene_errors, open_store


@click.command("validate")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--show-fixed", "-s",
    is_flag=True,
    help="Print the normalized source after the result."
)
def validate(file: Path, show_fixed: bool):
    """Run the component validator on a source file.

    \b
    Examples:
        scene-codegen validate Widget.tsx
        scene-codegen validate Widget.tsx --show-fixed
        scene-codegen --format json validate Widget.tsx
    """
    config = get_config()
    result = validate_component(file.read_text(encoding="utf-8"))
    payload = result.to_dict()
    if not show_fixed:
        payload.pop("fixedCode", None)
    click.echo(format_output(payload, config.format))
    if show_fixed and config.format != "json":
        click.echo(result.fixed_code)
    if not result.valid:
        sys.exit(1)


@click.command("show")
@click.argument("scene_id")
@handle_scene_errors
def show(scene_id: str):
    """Show the code fields of a stored scene.

    \b
    Examples:
        scene-codegen --store ./scenes show intro-01
    """
    config = get_config()
    accessor = SceneBufferAccessor(open_store(config), scene_id)
    state = accessor.load()
    click.echo(format_output({"sceneId": scene_id, "version": state.version, **state.to_content()}, config.format))


@click.command("reset")
@click.argument("scene_id")
@handle_scene_errors
def reset(scene_id: str):
    """Start a fresh, empty buffer for a scene (creates the scene if needed).

    \b
    Examples:
        scene-codegen --store ./scenes reset intro-01
    """
    config = get_config()
    store = open_store(config)
    if store.get(scene_id) is None:
        store.create(scene_id)
        print_info(f"Created scene {scene_id}")
    result = write_code(SceneBufferAccessor(store, scene_id), "")
    click.echo(format_output(result, config.format))
    print_success(f"Buffer reset for {scene_id}")


@click.command("edit")
@click.argument("scene_id")
@click.argument("instruction")
@click.option(
    "--provider", "-p",
    type=click.Choice(["openai", "anthropic"]),
    default=None,
    help="LLM provider (default: SCENE_CODEGEN_LLM_PROVIDER or openai)."
)
@click.option(
    "--model", "-m",
    default=None,
    help="Model name override."
)
@handle_scene_errors
def edit(scene_id: str, instruction: str, provider: Optional[str], model: Optional[str]):
    """Edit a finalized component with a natural-language instruction.

    \b
    Examples:
        scene-codegen --store ./scenes edit intro-01 "make the title blue"
        scene-codegen --store ./scenes edit intro-01 "slow the fade" --provider anthropic
    """
    config = get_config()
    store = open_store(config)
    if store.get(scene_id) is None:
        raise SceneNotFoundError(scene_id)
    machine = GenerationStateMachine(SceneBufferAccessor(store, scene_id))
    author = LLMComponentAuthor(provider, model=model)
    result = asyncio.run(machine.edit_artifact(instruction, author))
    click.echo(format_output(result, config.format))
    if not result.get("success"):
        print_error(result.get("error", "Edit failed"))
        sys.exit(1)
    if result.get("validated"):
        print_success(f"Component updated for {scene_id}")
    else:
        print_info(result.get("warning", "Saved without passing validation"))
