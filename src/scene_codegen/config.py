"""Centralized configuration for the scene code pipeline.

Loads settings from a .env file (if present) next to this module, or from
the file named by SCENE_CODEGEN_ENV_FILE, then falls back to environment
variables, then to hardcoded defaults.

Usage in other modules:
    from scene_codegen.config import cfg

    ceiling = cfg.max_validation_attempts
    timeout = cfg.tool_timeout("finalize")
"""
from __future__ import annotations

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# .env loader (no dependency on python-dotenv)
# ---------------------------------------------------------------------------

_ENV_DIR = Path(__file__).resolve().parent


def _load_dotenv(env_file: Path | None = None) -> None:
    """Parse a .env file and inject values into os.environ.

    Only sets a variable if it is NOT already present in the environment,
    so real env vars always win.
    """
    if env_file is None:
        override = os.environ.get("SCENE_CODEGEN_ENV_FILE")
        env_file = Path(override) if override else _ENV_DIR / ".env"
    if not env_file.is_file():
        return
    for line in env_file.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip().strip("'\"")
        if key and key not in os.environ:
            os.environ[key] = value


_load_dotenv()


# ---------------------------------------------------------------------------
# Config class
# ---------------------------------------------------------------------------

_DEFAULT_OPENAI_MODEL = "gpt-5.2"
_DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-5-20250929"

# Seconds. Every operation is a single store round-trip.
_DEFAULT_TIMEOUTS = {
    "write_code": 15.0,
    "edit_code": 10.0,
    "read_code": 10.0,
    "finalize": 20.0,
    "report_error": 10.0,
}


def _int_env(name: str, default: int, minimum: int = 0) -> int:
    val = os.environ.get(name)
    if val is None or val.strip() == "":
        return default
    try:
        parsed = int(val)
    except ValueError:
        return default
    return parsed if parsed >= minimum else default


class _Config:
    """Read-only configuration object. All values resolve at access time so
    they pick up any later changes to os.environ."""

    # ── Retry ceilings ───────────────────────────────────────────────

    @property
    def max_validation_attempts(self) -> int:
        """Finalize attempts before the scene is marked ``error``."""
        return _int_env("SCENE_CODEGEN_MAX_VALIDATION_ATTEMPTS", 3, minimum=1)

    @property
    def edit_max_attempts(self) -> int:
        """Candidates generated per edit-artifact request (first + corrective)."""
        return _int_env("SCENE_CODEGEN_EDIT_MAX_ATTEMPTS", 2, minimum=1)

    # ── Buffer protocol ──────────────────────────────────────────────

    @property
    def preview_lines(self) -> int:
        return _int_env("SCENE_CODEGEN_PREVIEW_LINES", 5, minimum=1)

    @property
    def read_default_lines(self) -> int:
        return _int_env("SCENE_CODEGEN_READ_DEFAULT_LINES", 999, minimum=1)

    def tool_timeout(self, operation: str) -> float:
        """Per-operation timeout in seconds (``SCENE_CODEGEN_TIMEOUT_<OP>``)."""
        default = _DEFAULT_TIMEOUTS.get(operation, 10.0)
        val = os.environ.get(f"SCENE_CODEGEN_TIMEOUT_{operation.upper()}")
        if not val:
            return default
        try:
            parsed = float(val)
        except ValueError:
            return default
        return parsed if parsed > 0 else default

    # ── Storage / logging ────────────────────────────────────────────

    @property
    def store_path(self) -> str | None:
        """Directory for the JSON file store. Unset means in-memory."""
        return os.environ.get("SCENE_CODEGEN_STORE_PATH") or None

    @property
    def log_level(self) -> str:
        return os.environ.get("SCENE_CODEGEN_LOG_LEVEL", "INFO").upper()

    # ── LLM provider ─────────────────────────────────────────────────

    @property
    def llm_provider(self) -> str:
        provider = os.environ.get("SCENE_CODEGEN_LLM_PROVIDER", "openai").strip().lower()
        return provider if provider in ("openai", "anthropic") else "openai"

    @property
    def openai_api_key(self) -> str | None:
        """Resolve OpenAI API key (first match wins)."""
        for var in ("OPENAI_API_KEY", "SCENE_CODEGEN_OPENAI_API_KEY"):
            val = os.environ.get(var)
            if val:
                return val
        return None

    @property
    def anthropic_api_key(self) -> str | None:
        for var in ("ANTHROPIC_API_KEY", "SCENE_CODEGEN_ANTHROPIC_API_KEY"):
            val = os.environ.get(var)
            if val:
                return val
        return None

    @property
    def codegen_model(self) -> str:
        default = _DEFAULT_ANTHROPIC_MODEL if self.llm_provider == "anthropic" else _DEFAULT_OPENAI_MODEL
        return os.environ.get("SCENE_CODEGEN_MODEL", default)

    @property
    def max_output_tokens(self) -> int:
        """Maximum output tokens per LLM call (prevents runaway generation)."""
        return _int_env("SCENE_CODEGEN_MAX_OUTPUT_TOKENS", 16000, minimum=1)


cfg = _Config()
