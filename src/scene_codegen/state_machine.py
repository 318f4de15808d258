"""Generation state machine: finalize, report_error and the edit-artifact flow.

States: ``pending -> generating -> {ready, error}``. Buffer mutations
(see ``buffer``) re-enter ``generating``; only this module moves a scene
to ``ready`` or ``error``.
"""
from __future__ import annotations

import logging
from typing import Any

from .buffer import SceneBufferAccessor
from .component_author import ComponentAuthor, build_edit_prompt, build_fix_prompt, extract_code
from .config import cfg
from .errors import StaleBufferError
from .models import GenerationStatus, error_response
from .retry import BoundedRetry, ExhaustionPolicy
from .validator import ComponentValidator

logger = logging.getLogger(__name__)

NO_CODE_ERROR = "Model response did not contain a ```tsx code block."


class GenerationStateMachine:
    """Drives one scene's owned fields through validation outcomes."""

    def __init__(
        self,
        accessor: SceneBufferAccessor,
        *,
        finalize_retry: BoundedRetry | None = None,
        edit_retry: BoundedRetry | None = None,
    ):
        self.accessor = accessor
        self.finalize_retry = finalize_retry or BoundedRetry(
            cfg.max_validation_attempts, ExhaustionPolicy.HARD_FAIL
        )
        self.edit_retry = edit_retry or BoundedRetry(cfg.edit_max_attempts, ExhaustionPolicy.FAIL_SOFT)

    @property
    def scene_id(self) -> str:
        return self.accessor.scene_id

    # ── finalize ─────────────────────────────────────────────────────

    def finalize(self) -> dict[str, Any]:
        """Validate the buffer and either publish it, keep it for another try, or fail the scene."""
        state = self.accessor.load()
        if not state.code_buffer.strip():
            details = "Write the component with write_code before calling finalize."
            if state.generation_status == GenerationStatus.READY:
                details = "The scene is already finalized; nothing to do."
            return error_response("Buffer is empty", details)

        max_attempts = self.finalize_retry.max_attempts
        if not self.finalize_retry.can_start(state.validation_attempts):
            return error_response(
                "Validation attempts exhausted",
                f"{state.validation_attempts} of {max_attempts} attempts used. "
                "Rewrite the whole buffer with write_code to start a new attempt.",
                attempt=state.validation_attempts,
                maxAttempts=max_attempts,
            )

        validator = ComponentValidator()
        result = validator.validate(state.code_buffer)

        if result.valid:
            self.accessor.save(
                {
                    "generatedCode": result.fixed_code,
                    "generationStatus": GenerationStatus.READY.value,
                    "codeBuffer": "",
                    "generationError": None,
                },
                state.version,
            )
            logger.info("Scene %s finalized (%d chars)", self.scene_id, len(result.fixed_code))
            response: dict[str, Any] = {"success": True, "totalChars": len(result.fixed_code)}
            if result.warnings:
                response["warnings"] = result.warnings
            return response

        attempt = state.validation_attempts + 1
        decision = self.finalize_retry.decide(attempt)
        extra: dict[str, Any] = {"attempt": attempt, "maxAttempts": max_attempts}
        if result.undefined_refs:
            extra["undefinedRefs"] = result.undefined_refs

        if decision.retry:
            self.accessor.save(
                {
                    "codeBuffer": result.fixed_code,
                    "validationAttempts": attempt,
                    "generationStatus": GenerationStatus.GENERATING.value,
                },
                state.version,
            )
            logger.info(
                "Scene %s failed validation (attempt %d/%d): %s",
                self.scene_id, attempt, max_attempts, result.error,
            )
            extra["message"] = (
                f"Validation failed (attempt {attempt}/{max_attempts}). The buffer now holds the "
                "normalized code; fix it with read_code/edit_code and call finalize again."
            )
            return error_response(result.error or "Validation failed", **extra)

        generation_error = f"Validation failed after {attempt} attempts: {result.error}"
        self.accessor.save(
            {
                "validationAttempts": attempt,
                "generationStatus": GenerationStatus.ERROR.value,
                "generationError": generation_error,
                "generatedCode": None,
            },
            state.version,
        )
        logger.warning("Scene %s exhausted validation attempts: %s", self.scene_id, result.error)
        extra["message"] = generation_error
        return error_response(result.error or "Validation failed", **extra)

    # ── report_error ─────────────────────────────────────────────────

    def report_error(self, error_message: str) -> dict[str, Any]:
        """Caller-declared infeasibility; bypasses validation entirely."""
        if not error_message or not error_message.strip():
            return error_response("errorMessage must not be empty", "Explain why the request cannot be completed.")
        state = self.accessor.load()
        self.accessor.save(
            {
                "generationStatus": GenerationStatus.ERROR.value,
                "generationError": error_message.strip(),
                "generatedCode": None,
            },
            state.version,
        )
        logger.warning("Scene %s reported infeasible: %s", self.scene_id, error_message.strip())
        return {"success": True}

    # ── edit existing artifact ───────────────────────────────────────

    async def edit_artifact(
        self,
        instruction: str,
        author: ComponentAuthor,
        history: list[dict[str, str]] | None = None,
    ) -> dict[str, Any]:
        """Rewrite the finalized component per ``instruction``.

        One corrective round-trip is allowed by default. If every candidate is
        invalid, the last one is saved anyway and the response carries a
        warning; the artifact is only left untouched when no candidate code
        was produced at all.

        If the scene is written by someone else while the model is working,
        nothing is saved and a "Scene was modified concurrently" error is
        returned.
        """
        if not instruction or not instruction.strip():
            return error_response("instruction must not be empty")
        state = self.accessor.load()
        if state.generation_status != GenerationStatus.READY or not state.generated_code:
            return error_response(
                "Scene has no finalized component to edit",
                f"generationStatus is '{state.generation_status.value}'.",
            )

        validator = ComponentValidator()
        prompt = build_edit_prompt(state.generated_code, instruction, history)
        last_candidate: str | None = None
        last_error: str | None = None
        attempt = 0

        while True:
            attempt += 1
            code = extract_code(await author.generate(prompt))
            if code is None:
                last_error = NO_CODE_ERROR
            else:
                result = validator.validate(code)
                if result.valid:
                    try:
                        self._publish(result.fixed_code, state.version)
                    except StaleBufferError as e:
                        return self._stale_edit(e, attempt)
                    logger.info("Scene %s edited on attempt %d", self.scene_id, attempt)
                    response: dict[str, Any] = {
                        "success": True,
                        "validated": True,
                        "attempts": attempt,
                        "totalChars": len(result.fixed_code),
                    }
                    if result.warnings:
                        response["warnings"] = result.warnings
                    return response
                last_candidate = result.fixed_code
                last_error = result.error

            decision = self.edit_retry.decide(attempt)
            if decision.retry:
                logger.info("Scene %s edit attempt %d invalid: %s", self.scene_id, attempt, last_error)
                if last_candidate is not None:
                    prompt = build_fix_prompt(last_candidate, last_error or "", instruction)
                continue
            break

        if last_candidate is None:
            return error_response(
                "Edit produced no code",
                f"{attempt} attempt(s) without a code block; the component was not changed.",
                attempts=attempt,
            )

        try:
            self._publish(last_candidate, state.version)
        except StaleBufferError as e:
            return self._stale_edit(e, attempt)
        logger.warning(
            "Scene %s saved edit that failed validation after %d attempts: %s",
            self.scene_id, attempt, last_error,
        )
        return {
            "success": True,
            "validated": False,
            "attempts": attempt,
            "totalChars": len(last_candidate),
            "validationError": last_error,
            "warning": f"Saved without passing validation: {last_error}",
        }

    def _stale_edit(self, error: StaleBufferError, attempts: int) -> dict[str, Any]:
        logger.warning("Scene %s changed during edit; generated code discarded (%s)", self.scene_id, error.details)
        return error_response(
            error.message,
            "The scene changed while the edit was being generated, so the edit was not saved. Retry the edit.",
            attempts=attempts,
        )

    def _publish(self, code: str, expected_version: int) -> None:
        self.accessor.save(
            {
                "generatedCode": code,
                "generationStatus": GenerationStatus.READY.value,
                "generationError": None,
            },
            expected_version,
        )
