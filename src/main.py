"""Run the scene code MCP server for one scene."""
import argparse
import logging
import os
import sys

from scene_codegen.config import cfg
from scene_codegen.store import build_store
from services.dispatcher import build_scene_server

logger = logging.getLogger("scene-codegen-server")


def _configure_logging(level_name: str) -> None:
    # stdout carries the MCP stdio channel; logs go to stderr only.
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s: %(message)s"))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, level_name.upper(), logging.INFO))


def main() -> None:
    parser = argparse.ArgumentParser(
        description="MCP server exposing write_code/edit_code/read_code/finalize/report_error for one scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  scene-codegen-server --scene-id intro-01
  scene-codegen-server --scene-id intro-01 --store ./scenes --transport http --port 8765
""",
    )
    parser.add_argument(
        "--scene-id",
        default=os.environ.get("SCENE_CODEGEN_SCENE_ID"),
        help="Scene this server is bound to (or set SCENE_CODEGEN_SCENE_ID)",
    )
    parser.add_argument("--store", help="JSON scene store directory (default: SCENE_CODEGEN_STORE_PATH, else in-memory)")
    parser.add_argument("--transport", choices=["stdio", "http"], default="stdio", help="MCP transport")
    parser.add_argument("--host", default="127.0.0.1", help="HTTP bind host")
    parser.add_argument("--port", type=int, default=8765, help="HTTP port")
    parser.add_argument("--log-level", default=cfg.log_level, help="Logging level (default: %(default)s)")
    args = parser.parse_args()

    if not args.scene_id:
        parser.error("--scene-id is required (or set SCENE_CODEGEN_SCENE_ID)")

    _configure_logging(args.log_level)

    store = build_store(args.store)
    if store.get(args.scene_id) is None:
        logger.info("Scene %s not found in store; creating it", args.scene_id)
        store.create(args.scene_id)

    mcp = build_scene_server(args.scene_id, store)
    if args.transport == "http":
        mcp.run(transport="http", host=args.host, port=args.port)
    else:
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
