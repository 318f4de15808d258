"""Entry point for the ``scene-codegen`` operator CLI."""

import logging

import click

from cli.commands.scene import edit, reset, show, validate
from cli.utils.config import set_config
from scene_codegen.config import cfg


@click.group()
@click.option(
    "--format", "-f", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format."
)
@click.option(
    "--store",
    default=None,
    help="Directory of the JSON scene store (default: SCENE_CODEGEN_STORE_PATH)."
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show DEBUG-level logs."
)
def cli(output_format: str, store: str | None, verbose: bool):
    """Inspect, validate and edit generated scene components."""
    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level, logging.INFO)
    logging.basicConfig(level=level, format="%(name)s %(levelname)s: %(message)s")
    set_config(format=output_format, store_path=store)


cli.add_command(validate)
cli.add_command(show)
cli.add_command(reset)
cli.add_command(edit)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
