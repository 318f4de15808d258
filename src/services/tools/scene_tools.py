"""
Defines the scene code tools: write_code, edit_code, read_code, finalize, report_error.
"""
from typing import Annotated, Any

from fastmcp import FastMCP
from mcp.types import ToolAnnotations

from scene_codegen import buffer
from scene_codegen.models import error_response
from services.dispatcher import SceneBinding
from services.tools.utils import coerce_int


def _line_arg(name: str, raw: Any) -> tuple[int | None, dict[str, Any] | None]:
    """Coerce an optional line argument; returns (value, error_response)."""
    value = coerce_int(raw)
    if raw is not None and value is None:
        return None, error_response(f"{name} must be an integer", f"Got {raw!r}.")
    return value, None


# ---------------------------------------------------------------------------
# Handlers (one per tool, callable without a server)
# ---------------------------------------------------------------------------


async def _handle_write(
    binding: SceneBinding,
    code: str | None,
    start_line: Any = None,
    end_line: Any = None,
    scene_id: str | None = None,
) -> dict[str, Any]:
    mismatch = binding.check_scene_id(scene_id)
    if mismatch:
        return mismatch
    if not isinstance(code, str):
        return error_response("code is required", "Pass the component source text (an empty string clears a range).")
    start, err = _line_arg("startLine", start_line)
    if err:
        return err
    end, err = _line_arg("endLine", end_line)
    if err:
        return err
    return await binding.dispatch("write_code", buffer.write_code, binding.accessor, code, start, end)


async def _handle_edit(
    binding: SceneBinding,
    old_string: str | None,
    new_string: str | None,
    scene_id: str | None = None,
) -> dict[str, Any]:
    mismatch = binding.check_scene_id(scene_id)
    if mismatch:
        return mismatch
    if not old_string:
        return error_response("oldString must not be empty", "Pass the exact text to replace.")
    if new_string is None:
        return error_response("newString is required", "Use an empty string to delete the matched text.")
    return await binding.dispatch("edit_code", buffer.edit_code, binding.accessor, old_string, new_string)


async def _handle_read(
    binding: SceneBinding,
    start_line: Any = None,
    num_lines: Any = None,
    scene_id: str | None = None,
) -> dict[str, Any]:
    mismatch = binding.check_scene_id(scene_id)
    if mismatch:
        return mismatch
    start, err = _line_arg("startLine", start_line)
    if err:
        return err
    count, err = _line_arg("numLines", num_lines)
    if err:
        return err
    return await binding.dispatch("read_code", buffer.read_code, binding.accessor, start, count)


async def _handle_finalize(binding: SceneBinding, scene_id: str | None = None) -> dict[str, Any]:
    mismatch = binding.check_scene_id(scene_id)
    if mismatch:
        return mismatch
    return await binding.dispatch("finalize", binding.machine.finalize)


async def _handle_report_error(
    binding: SceneBinding,
    error_message: str | None,
    scene_id: str | None = None,
) -> dict[str, Any]:
    mismatch = binding.check_scene_id(scene_id)
    if mismatch:
        return mismatch
    if not error_message or not error_message.strip():
        return error_response("errorMessage must not be empty", "Explain why the request cannot be completed.")
    return await binding.dispatch("report_error", binding.machine.report_error, error_message)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def register_scene_tools(mcp: FastMCP, binding: SceneBinding) -> None:
    """Registers the scene code tools, all bound to ``binding.scene_id``."""

    @mcp.tool(
        name="write_code",
        description=(
            "Write component code to the buffer. Without startLine/endLine the whole buffer is replaced "
            "(this also starts a new validation cycle). With a range, lines [startLine, endLine) are "
            "replaced by the given code; pass only startLine to insert. Lines are 0-indexed. "
            "Returns totalLines, totalChars and a preview."
        ),
        annotations=ToolAnnotations(title="Write Code", destructiveHint=True),
    )
    async def write_code(
        code: Annotated[str, "Component source text, or the lines to splice in."],
        start_line: Annotated[int | str, "0-indexed first line of the range to replace."] | None = None,
        end_line: Annotated[int | str, "0-indexed exclusive end of the range to replace."] | None = None,
        scene_id: Annotated[str, "Optional. Must equal the bound scene id if given."] | None = None,
    ) -> dict[str, Any]:
        return await _handle_write(binding, code, start_line, end_line, scene_id)

    @mcp.tool(
        name="edit_code",
        description=(
            "Replace the first exact occurrence of oldString with newString. oldString must be copied "
            "exactly from read_code output (without the line-number prefix). Returns matchLine, the "
            "1-based line where the match started."
        ),
        annotations=ToolAnnotations(title="Edit Code", destructiveHint=True),
    )
    async def edit_code(
        old_string: Annotated[str, "Exact text currently in the buffer."],
        new_string: Annotated[str, "Replacement text (empty string deletes)."],
        scene_id: Annotated[str, "Optional. Must equal the bound scene id if given."] | None = None,
    ) -> dict[str, Any]:
        return await _handle_edit(binding, old_string, new_string, scene_id)

    @mcp.tool(
        name="read_code",
        description=(
            "Read the buffer with line numbers. startLine is 0-indexed (default 0); numLines defaults to "
            "the whole buffer. hasMore tells whether lines remain after the window."
        ),
        annotations=ToolAnnotations(title="Read Code", readOnlyHint=True),
    )
    async def read_code(
        start_line: Annotated[int | str, "0-indexed first line to return."] | None = None,
        num_lines: Annotated[int | str, "Number of lines to return."] | None = None,
        scene_id: Annotated[str, "Optional. Must equal the bound scene id if given."] | None = None,
    ) -> dict[str, Any]:
        return await _handle_read(binding, start_line, num_lines, scene_id)

    @mcp.tool(
        name="finalize",
        description=(
            "Validate the buffer and publish it as the scene's component. On failure the buffer is "
            "replaced by its normalized form and the error (with undefinedRefs, attempt and maxAttempts) "
            "is returned; fix it and call finalize again."
        ),
        annotations=ToolAnnotations(title="Finalize"),
    )
    async def finalize(
        scene_id: Annotated[str, "Optional. Must equal the bound scene id if given."] | None = None,
    ) -> dict[str, Any]:
        return await _handle_finalize(binding, scene_id)

    @mcp.tool(
        name="report_error",
        description=(
            "Mark the scene as failed with an explanation. Use when the request cannot be completed, "
            "so the user is notified immediately."
        ),
        annotations=ToolAnnotations(title="Report Error", destructiveHint=True),
    )
    async def report_error(
        error_message: Annotated[str, "Why the request cannot be completed."],
        scene_id: Annotated[str, "Optional. Must equal the bound scene id if given."] | None = None,
    ) -> dict[str, Any]:
        return await _handle_report_error(binding, error_message, scene_id)
