"""Dispatcher: one FastMCP server per scene, with per-call timeouts.

Every tool call becomes a single store round-trip run in a worker thread
under ``asyncio.wait_for``. Nothing raised inside crosses the tool
boundary; failures come back as ``{"success": False, "error", "details"}``.
"""
import asyncio
import logging
from typing import Any, Callable

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from scene_codegen.buffer import SceneBufferAccessor
from scene_codegen.config import cfg
from scene_codegen.errors import SceneBindingError, SceneCodegenError, SceneNotFoundError, StaleBufferError
from scene_codegen.models import error_response
from scene_codegen.state_machine import GenerationStateMachine
from scene_codegen.store import SceneStore, build_store, validate_scene_id
from transport.param_normalizer_middleware import SceneArgumentMiddleware

logger = logging.getLogger("scene-codegen-server")

SERVER_INSTRUCTIONS = """Tools for writing one React/Remotion component into a scene's code buffer.

Workflow:
1. write_code the component (in chunks with startLine/endLine if it is long)
2. read_code / edit_code to check and correct it
3. finalize to validate and publish it; on failure, fix the reported error and finalize again
4. report_error if the request cannot be completed

If a call times out, the scene state is unknown: call read_code before continuing."""


class SceneBinding:
    """Everything a tool call needs for the one scene this server is bound to."""

    def __init__(self, scene_id: str, store: SceneStore):
        self.scene_id = validate_scene_id(scene_id)
        self.store = store
        self.accessor = SceneBufferAccessor(store, self.scene_id)
        self.machine = GenerationStateMachine(self.accessor)

    def check_scene_id(self, scene_id: str | None) -> dict[str, Any] | None:
        """Error response if the caller addressed a different scene, else None."""
        if scene_id is None or scene_id == self.scene_id:
            return None
        error = SceneBindingError(self.scene_id, scene_id)
        logger.warning("Rejected call for scene %s on server bound to %s", scene_id, self.scene_id)
        return error_response(error.message, error.details)

    async def dispatch(self, operation: str, func: Callable[..., dict[str, Any]], *args: Any) -> dict[str, Any]:
        """Run ``func(*args)`` in a worker thread within the operation's timeout."""
        timeout = cfg.tool_timeout(operation)
        logger.debug("Dispatching %s for scene %s (timeout %.1fs)", operation, self.scene_id, timeout)
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("%s timed out after %.1fs for scene %s", operation, timeout, self.scene_id)
            return error_response(
                f"{operation} timed out after {timeout:g}s",
                "The scene state is unknown; call read_code before continuing.",
            )
        except StaleBufferError as e:
            logger.info("Stale write rejected for scene %s: %s", self.scene_id, e.details)
            return error_response(e.message, e.details)
        except SceneNotFoundError as e:
            return error_response(e.message, "The scene may have been deleted.")
        except SceneCodegenError as e:
            return error_response(e.message, e.details)
        except Exception as e:
            logger.exception("Unexpected error in %s for scene %s", operation, self.scene_id)
            return error_response(f"Internal error during {operation}", str(e))


def build_scene_server(scene_id: str, store: SceneStore | None = None) -> FastMCP:
    """FastMCP server whose tools are all bound to ``scene_id``."""
    from services.tools.scene_tools import register_scene_tools

    binding = SceneBinding(scene_id, store or build_store())
    mcp = FastMCP(name=f"scene-codegen-{binding.scene_id}", instructions=SERVER_INSTRUCTIONS)
    mcp.add_middleware(SceneArgumentMiddleware())
    register_scene_tools(mcp, binding)

    @mcp.custom_route("/health", methods=["GET"])
    async def health(_: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "sceneId": binding.scene_id})

    logger.info("Scene server ready for %s", binding.scene_id)
    return mcp
