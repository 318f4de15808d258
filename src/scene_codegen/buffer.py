"""Progressive code buffer: write, edit and read a scene's in-progress source.

Each operation is one read-modify-write against the entity store. The
snapshot's version is passed back on save, so a concurrent writer causes
``StaleBufferError`` instead of a silently lost update.
"""
from __future__ import annotations

import logging
from typing import Any

from .config import cfg
from .errors import SceneNotFoundError
from .models import GenerationStatus, SceneCodeState, error_response
from .store import SceneStore

logger = logging.getLogger(__name__)

EMPTY_BUFFER_HINT = "Buffer is empty. Use write_code to start writing the component."
EXHAUSTED_HINT = (
    "Validation attempts are exhausted, so finalize will refuse this buffer. "
    "Rewrite the whole buffer with write_code (no startLine/endLine) to start a new attempt."
)


class SceneBufferAccessor:
    """Loads and saves the owned fields of one scene."""

    def __init__(self, store: SceneStore, scene_id: str):
        self.store = store
        self.scene_id = scene_id

    def load(self) -> SceneCodeState:
        record = self.store.get(self.scene_id)
        if record is None:
            raise SceneNotFoundError(self.scene_id)
        return SceneCodeState.from_content(record.get("content"), int(record.get("version", 0)))

    def save(self, changes: dict[str, Any], expected_version: int | None) -> int:
        """Merge owned-field ``changes`` (``None`` removes) and return the new version."""
        version = self.store.update_content(self.scene_id, changes, expected_version=expected_version)
        logger.debug("Scene %s saved at version %d: %s", self.scene_id, version, sorted(changes))
        return version


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def split_lines(text: str) -> list[str]:
    """Lines of ``text``; the empty buffer has zero lines."""
    return text.split("\n") if text else []


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def splice_lines(buffer: str, code: str, start_line: int | None, end_line: int | None) -> str:
    """Replace lines ``[start_line, end_line)`` of ``buffer`` with the lines of ``code``.

    A missing ``end_line`` inserts at ``start_line``; a missing ``start_line``
    starts at 0. Both are clamped to the current line count, and an end
    before the start is treated as the start. Empty ``code`` deletes the range.
    """
    lines = split_lines(buffer)
    count = len(lines)
    start = _clamp(start_line if start_line is not None else 0, 0, count)
    end = _clamp(end_line if end_line is not None else start, 0, count)
    if end < start:
        end = start
    return "\n".join(lines[:start] + split_lines(code) + lines[end:])


def _numbered(lines: list[str], first_number: int) -> list[str]:
    return [f"{first_number + i}| {line}" for i, line in enumerate(lines)]


def build_preview(buffer: str, lines_each: int | None = None) -> str:
    """Head and tail of the buffer, line-numbered, with an omitted-lines marker in between."""
    n = lines_each or cfg.preview_lines
    lines = split_lines(buffer)
    if len(lines) <= 2 * n:
        return "\n".join(_numbered(lines, 1))
    omitted = len(lines) - 2 * n
    head = _numbered(lines[:n], 1)
    tail = _numbered(lines[-n:], len(lines) - n + 1)
    return "\n".join([*head, f"... ({omitted} lines omitted) ...", *tail])


def buffer_stats(buffer: str) -> dict[str, Any]:
    return {
        "totalLines": len(split_lines(buffer)),
        "totalChars": len(buffer),
        "preview": build_preview(buffer),
    }


def _attempts_exhausted(state: SceneCodeState) -> bool:
    return state.validation_attempts >= cfg.max_validation_attempts


def _mutation_changes(new_buffer: str) -> dict[str, Any]:
    """Owned-field changes for any buffer mutation: back to ``generating``, no artifact."""
    return {
        "codeBuffer": new_buffer,
        "generationStatus": GenerationStatus.GENERATING.value,
        "generatedCode": None,
        "generationError": None,
    }


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def write_code(
    accessor: SceneBufferAccessor,
    code: str,
    start_line: int | None = None,
    end_line: int | None = None,
) -> dict[str, Any]:
    """Replace the whole buffer, or splice ``code`` into a line range.

    A full write starts a new attempt cycle and resets ``validationAttempts``.
    """
    state = accessor.load()
    ranged = start_line is not None or end_line is not None
    if ranged:
        new_buffer = splice_lines(state.code_buffer, code, start_line, end_line)
    else:
        new_buffer = code
    changes = _mutation_changes(new_buffer)
    if not ranged:
        changes["validationAttempts"] = 0
    accessor.save(changes, state.version)
    logger.debug(
        "write_code on %s (%s): %d chars",
        accessor.scene_id,
        f"lines {start_line}..{end_line}" if ranged else "full",
        len(new_buffer),
    )
    result = {"success": True, **buffer_stats(new_buffer)}
    if ranged and _attempts_exhausted(state):
        result["warning"] = EXHAUSTED_HINT
    return result


def edit_code(accessor: SceneBufferAccessor, old_string: str, new_string: str) -> dict[str, Any]:
    """Replace the first exact occurrence of ``old_string``."""
    if not old_string:
        return error_response("oldString must not be empty", "Pass the exact text to replace.")
    state = accessor.load()
    buffer = state.code_buffer
    index = buffer.find(old_string)
    if index == -1:
        return error_response(
            "oldString not found in buffer",
            "Match must be exact, including whitespace. Use read_code to see the current text.",
            **buffer_stats(buffer),
        )

    new_buffer = buffer[:index] + new_string + buffer[index + len(old_string):]
    match_line = buffer.count("\n", 0, index) + 1
    occurrences = buffer.count(old_string)
    accessor.save(_mutation_changes(new_buffer), state.version)

    result: dict[str, Any] = {
        "success": True,
        "matchLine": match_line,
        "totalLines": len(split_lines(new_buffer)),
        "totalChars": len(new_buffer),
    }
    if occurrences > 1:
        result["occurrences"] = occurrences
        result["note"] = (
            f"oldString occurs {occurrences} times; only the first (line {match_line}) was replaced."
        )
    if _attempts_exhausted(state):
        result["warning"] = EXHAUSTED_HINT
    return result


def read_code(
    accessor: SceneBufferAccessor,
    start_line: int | None = None,
    num_lines: int | None = None,
) -> dict[str, Any]:
    """Line-numbered window ``[start_line, start_line + num_lines)``; line numbers are 1-based."""
    state = accessor.load()
    lines = split_lines(state.code_buffer)
    total = len(lines)
    if not total:
        return {
            "success": True,
            "content": "",
            "startLine": 0,
            "endLine": 0,
            "totalLines": 0,
            "hasMore": False,
            "generationStatus": state.generation_status.value,
            "message": EMPTY_BUFFER_HINT,
        }

    start = _clamp(start_line or 0, 0, total)
    count = num_lines if num_lines is not None else cfg.read_default_lines
    end = _clamp(start + max(count, 0), start, total)
    return {
        "success": True,
        "content": "\n".join(_numbered(lines[start:end], start + 1)),
        "startLine": start,
        "endLine": end,
        "totalLines": total,
        "hasMore": end < total,
        "generationStatus": state.generation_status.value,
    }
