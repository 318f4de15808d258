"""Component Author: asks an LLM for a complete replacement of a finalized component.

Used by the edit-existing-artifact flow. Model, provider and API keys come
from scene_codegen/config.py (reads from .env file or environment variables).
"""
from __future__ import annotations

import asyncio
import logging
import re
from typing import Protocol

from .capabilities import (
    ANIMATION_HELPERS,
    ENTRY_SYMBOL,
    RENDERER_NAMES,
    STYLE_HELPERS,
    TYPOGRAPHY_HELPERS,
)
from .config import cfg

logger = logging.getLogger(__name__)

# Conversation turns carried into an edit prompt.
MAX_HISTORY_TURNS = 10


class ComponentAuthor(Protocol):
    """Anything that turns a prompt into raw model text (or None on failure)."""

    async def generate(self, prompt: str) -> str | None: ...


# ---------------------------------------------------------------------------
# Low-level LLM calls (async wrappers around the sync SDK clients)
# ---------------------------------------------------------------------------


class LLMComponentAuthor:
    """OpenAI Responses API or Anthropic Messages API, chosen by ``cfg.llm_provider``."""

    def __init__(
        self,
        provider: str | None = None,
        *,
        api_key: str | None = None,
        model: str | None = None,
    ):
        self.provider = (provider or cfg.llm_provider).lower()
        if self.provider not in ("openai", "anthropic"):
            raise ValueError(f"Unsupported LLM provider: {provider}")
        self.api_key = api_key or (
            cfg.anthropic_api_key if self.provider == "anthropic" else cfg.openai_api_key
        )
        self.model = model or cfg.codegen_model

    async def generate(self, prompt: str) -> str | None:
        if not self.api_key:
            logger.error("No API key configured for provider %s", self.provider)
            return None
        call = self._call_anthropic if self.provider == "anthropic" else self._call_openai
        try:
            return await asyncio.to_thread(call, prompt)
        except Exception:
            logger.exception("Component generation call failed (provider=%s, model=%s)", self.provider, self.model)
            return None

    def _call_openai(self, prompt: str) -> str | None:
        from openai import OpenAI
        client = OpenAI(api_key=self.api_key)
        response = client.responses.create(
            model=self.model,
            input=prompt,
            max_output_tokens=cfg.max_output_tokens,
        )
        return response.output_text

    def _call_anthropic(self, prompt: str) -> str | None:
        from anthropic import Anthropic
        client = Anthropic(api_key=self.api_key)
        response = client.messages.create(
            model=self.model,
            max_tokens=cfg.max_output_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        return response.content[0].text


# ---------------------------------------------------------------------------
# Prompt builders
# ---------------------------------------------------------------------------


def _api_reference() -> str:
    def names(group: frozenset[str]) -> str:
        return ", ".join(sorted(group))

    return f"""## Available in scope (do not import)
- React hooks and `React.createElement`
- Renderer: {names(RENDERER_NAMES)}
- Animation helpers: {names(ANIMATION_HELPERS)}
- Style helpers: {names(STYLE_HELPERS)}
- Typography: {names(TYPOGRAPHY_HELPERS)}
- `MockupPlaceholder` for image slots"""


_EDIT_RULES = f"""## Rules
1. Return the FULL modified component inside a single ```tsx code fence. No partial patches.
2. The component must stay `function {ENTRY_SYMBOL}({{ content, theme }})`.
3. No imports or exports; everything listed above is already in scope.
4. counterSpinUp() returns a raw float; always wrap: Math.round(counterSpinUp(...))
5. depthShadow() returns a string; use as boxShadow: depthShadow(), never spread
6. typewriterReveal(frame, delay, text.length) returns {{ visibleChars, showCursor }}
7. Use integer frame numbers for animation delays
8. Do NOT invent helper functions that are not listed above; define anything else locally."""


def build_edit_prompt(
    code: str,
    instruction: str,
    history: list[dict[str, str]] | None = None,
) -> str:
    """Prompt for a complete rewrite of ``code`` following ``instruction``."""
    turns = (history or [])[-MAX_HISTORY_TURNS:]
    history_text = "\n\n".join(
        f"{'User' if turn.get('role') == 'user' else 'Assistant'}: {turn.get('content', '')}"
        for turn in turns
    )
    history_section = f"## Conversation History\n{history_text}\n\n" if history_text else ""

    return f"""You are a precise React/Remotion component code editor.
You receive the current component source code and a user instruction, then return the COMPLETE modified code.

{_api_reference()}

{_EDIT_RULES}

## Current Component Code
```tsx
{code}
```

{history_section}## User Instruction
{instruction}"""


def build_fix_prompt(code: str, error: str, instruction: str | None = None) -> str:
    """Prompt to correct a candidate the validator rejected."""
    instruction_section = f"\n## Original Instruction\n{instruction}\n" if instruction else ""
    return f"""You are an expert React/Remotion developer. Fix the validation error in this component.

{_api_reference()}

## Component
```tsx
{code}
```

## Validation Error
{error}
{instruction_section}
{_EDIT_RULES}
9. Fix the error while preserving the intent of the change."""


# ---------------------------------------------------------------------------
# Code extraction
# ---------------------------------------------------------------------------

_FENCE_RE = re.compile(r"```(?:tsx|typescript|jsx|javascript|ts|js)?[ \t]*\n([\s\S]*?)```", re.IGNORECASE)


def extract_code(text: str | None) -> str | None:
    """Contents of the first fenced code block, or None when there is none."""
    if not text:
        return None
    match = _FENCE_RE.search(text)
    if not match:
        return None
    code = match.group(1).strip()
    return code or None
