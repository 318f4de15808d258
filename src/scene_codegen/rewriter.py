"""Deterministic text normalization applied to component source before validation.

Every step is a pure ``str -> str`` transformation and the whole pass is
idempotent: ``rewrite(rewrite(code)) == rewrite(code)``.
"""
from __future__ import annotations

import re

from .capabilities import (
    AGGREGATE_RETURNING_HELPERS,
    ENTRY_PARAMS,
    ENTRY_SYMBOL,
    STRING_RETURNING_HELPERS,
)

# ---------------------------------------------------------------------------
# Module syntax
# ---------------------------------------------------------------------------

# ``import [type] ... from "x"``, possibly spanning lines inside braces.
_IMPORT_FROM_RE = re.compile(
    r"^import\s+(?:type\s+)?[^;'\"]*?\bfrom\s+(['\"])[^'\"\n]*\1[ \t]*;?[ \t]*$",
    re.MULTILINE,
)
_IMPORT_BARE_RE = re.compile(r"^import\s+(['\"])[^'\"\n]*\1[ \t]*;?[ \t]*$", re.MULTILINE)

_EXPORT_LIST_RE = re.compile(
    r"^export\s*(?:type\s*)?\{[^}]*\}(?:\s*from\s+(['\"])[^'\"\n]*\1)?[ \t]*;?[ \t]*$",
    re.MULTILINE,
)
_EXPORT_DEFAULT_NAME_RE = re.compile(r"^export\s+default\s+[A-Za-z_$][\w$]*[ \t]*;?[ \t]*$", re.MULTILINE)
_EXPORT_DEFAULT_RE = re.compile(r"^export\s+default\s+", re.MULTILINE)
_EXPORT_RE = re.compile(r"^export\s+(?=\S)", re.MULTILINE)

_DIRECTIVE_RE = re.compile(r"^[ \t]*(['\"])use (?:client|server)\1[ \t]*;?", re.MULTILINE)


def strip_imports(code: str) -> str:
    code = _IMPORT_FROM_RE.sub("", code)
    return _IMPORT_BARE_RE.sub("", code)


def strip_exports(code: str) -> str:
    """Drop export keywords but keep the exported declarations."""
    code = _EXPORT_LIST_RE.sub("", code)
    code = _EXPORT_DEFAULT_NAME_RE.sub("", code)
    code = _EXPORT_DEFAULT_RE.sub("", code)
    return _EXPORT_RE.sub("", code)


def strip_directives(code: str) -> str:
    return _DIRECTIVE_RE.sub("", code)


# ---------------------------------------------------------------------------
# Entry symbol
# ---------------------------------------------------------------------------

_P1, _P2 = (re.escape(p) for p in ENTRY_PARAMS)
# ``({ content, theme })`` in either order, optional trailing comma and type annotation.
_ENTRY_PARAMS_PATTERN = (
    rf"\(\s*\{{\s*(?:{_P1}\s*,\s*{_P2}|{_P2}\s*,\s*{_P1})\s*,?\s*\}}\s*(?::\s*[^)]*)?\)"
)
_ENTRY_FUNCTION_RE = re.compile(
    rf"^(?P<prefix>(?:async\s+)?function\s+)(?P<name>[A-Za-z_$][\w$]*)(?P<rest>\s*{_ENTRY_PARAMS_PATTERN})",
    re.MULTILINE,
)
_ENTRY_ARROW_RE = re.compile(
    rf"^(?P<prefix>(?:const|let|var)\s+)(?P<name>[A-Za-z_$][\w$]*)"
    rf"(?P<rest>\s*(?::[^=]*)?=\s*(?:async\s+)?{_ENTRY_PARAMS_PATTERN}\s*=>)",
    re.MULTILINE,
)
_ENTRY_DECLARED_RE = re.compile(
    rf"\bfunction\s+{ENTRY_SYMBOL}\s*\(|^(?:const|let|var)\s+{ENTRY_SYMBOL}\b\s*(?::[^=]*)?=",
    re.MULTILINE,
)


def has_entry_symbol(code: str) -> bool:
    """True if the canonical entry symbol is declared anywhere in ``code``."""
    return _ENTRY_DECLARED_RE.search(code) is not None


def canonicalize_entry_symbol(code: str) -> str:
    """Rename the single top-level ``({content, theme})`` component to the entry symbol.

    Left unchanged when the entry symbol already exists, or when zero or
    several top-level candidates match the signature.
    """
    if has_entry_symbol(code):
        return code
    candidates = [*_ENTRY_FUNCTION_RE.finditer(code), *_ENTRY_ARROW_RE.finditer(code)]
    if len(candidates) != 1:
        return code
    match = candidates[0]
    return (
        code[: match.start("name")]
        + ENTRY_SYMBOL
        + code[match.end("name"):]
    )


# ---------------------------------------------------------------------------
# Known helper misuse
# ---------------------------------------------------------------------------


def fix_spread_string_helpers(code: str) -> str:
    """``...depthShadow(x)`` spreads a string; assign it to its style property instead."""
    for helper, prop in STRING_RETURNING_HELPERS.items():
        code = re.sub(
            rf"\.\.\.{re.escape(helper)}\s*\(([^)]*)\)",
            lambda m, h=helper, p=prop: f"{p}: {h}({m.group(1)})",
            code,
        )
    return code


def fix_destructured_aggregates(code: str) -> str:
    """``const { typo } = getTypography(x)`` binds the whole object as ``typo``."""
    for helper, names in AGGREGATE_RETURNING_HELPERS.items():
        for name in names:
            code = re.sub(
                rf"\b(const|let|var)\s*\{{\s*{re.escape(name)}\s*\}}\s*=\s*{re.escape(helper)}\(([^)]*)\)",
                lambda m, n=name, h=helper: f"{m.group(1)} {n} = {h}({m.group(2)})",
                code,
            )
    return code


_TYPEWRITER_RE = re.compile(r"typewriterReveal\(([\w$]+),\s*([\w$]+),\s*([\w$]+)\s*\)")


def _typewriter_length(match: re.Match[str]) -> str:
    frame, delay, third = match.groups()
    if third.isdigit():
        return match.group(0)
    return f"typewriterReveal({frame}, {delay}, {third}.length)"


def fix_typewriter_length(code: str) -> str:
    """``typewriterReveal`` takes a character count, not the text itself."""
    return _TYPEWRITER_RE.sub(_typewriter_length, code)


_THEME_FIXES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\btheme\.brandColors\.foreground\b"), "theme.colors.text"),
    (re.compile(r"\btheme\.brandColors\."), "theme.colors."),
    (re.compile(r"\btheme\.foreground\b"), "theme.colors.text"),
    (re.compile(r"\btheme\.palette\."), "theme.colors."),
)


def fix_theme_paths(code: str) -> str:
    for pattern, replacement in _THEME_FIXES:
        code = pattern.sub(replacement, code)
    return code


REWRITE_STEPS = (
    strip_exports,
    strip_imports,
    strip_directives,
    canonicalize_entry_symbol,
    fix_spread_string_helpers,
    fix_destructured_aggregates,
    fix_typewriter_length,
    fix_theme_paths,
)


def rewrite(code: str) -> str:
    """Apply every rewrite step in order."""
    for step in REWRITE_STEPS:
        code = step(code)
    return code
