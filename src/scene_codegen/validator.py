"""Static validation of generated component source.

Nothing is executed. The rewritten source is parsed with tree-sitter's TSX
grammar; parse errors are reported as ``SyntaxError`` with a line number,
and call targets, constructors and JSX component tags are checked against
the names declared in the source plus the ones the rendering host provides
(see ``capabilities``).

Scope is flat: a name declared anywhere in the component counts as declared
everywhere in it.
"""
from __future__ import annotations

import logging
from typing import Iterator

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree

from .capabilities import ENTRY_SYMBOL, is_allowed
from .models import ValidationResult
from .rewriter import has_entry_symbol, rewrite

logger = logging.getLogger(__name__)

TSX_LANGUAGE = Language(tree_sitter_typescript.language_tsx())

EMPTY_CODE_ERROR = "Empty code"
MISSING_ENTRY_ERROR = (
    f"Missing 'function {ENTRY_SYMBOL}({{ content, theme }})'. "
    f"Your component function must be named {ENTRY_SYMBOL}."
)
TYPEWRITER_ERROR = (
    "typewriterReveal() returns { visibleChars, showCursor }, NOT a string. "
    "You must use: const tw = typewriterReveal(frame, delay, text.length); "
    "then render text.slice(0, tw.visibleChars). "
    "Never pass the return value directly as a React child."
)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_tsx(code: str) -> Tree:
    """Parse ``code`` as TSX. A fresh parser per call, since tool calls run on worker threads."""
    return Parser(TSX_LANGUAGE).parse(code.encode("utf-8"))


def _text(node: Node) -> str:
    return node.text.decode("utf-8")


def _line(node: Node) -> int:
    return node.start_point[0] + 1


def _walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal, source order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


# ---------------------------------------------------------------------------
# Syntax
# ---------------------------------------------------------------------------


def _first_leaf(node: Node) -> Node:
    while node.children:
        node = node.children[0]
    return node


def _syntax_error(root: Node) -> str | None:
    if not root.has_error:
        return None
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_missing:
            return f"SyntaxError: Missing '{node.type}' at line {_line(node)}"
        if node.type == "ERROR":
            leaf = _first_leaf(node)
            token = (_text(leaf).strip() or _text(node).strip()).split("\n", 1)[0][:40]
            return f"SyntaxError: Unexpected '{token}' at line {_line(leaf)}"
        stack.extend(child for child in reversed(node.children) if child.has_error)
    return "SyntaxError: Unable to parse component"


def check_syntax(code: str) -> str | None:
    """Return a ``SyntaxError: ...`` message for the first parse error, else None."""
    return _syntax_error(parse_tsx(code).root_node)


# ---------------------------------------------------------------------------
# Definedness
# ---------------------------------------------------------------------------

_BINDING_LEAVES = frozenset({"identifier", "shorthand_property_identifier_pattern", "type_identifier"})
_NON_BINDING = frozenset({"type_annotation", "comment", "accessibility_modifier", "override_modifier"})
_NAMED_DECLARATIONS = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "generator_function",
    "class_declaration",
    "class",
})


def _binding_names(node: Node) -> list[str]:
    """Names bound by a declaration target or parameter list."""
    if node.type in _BINDING_LEAVES:
        return [_text(node)]
    if node.type == "pair_pattern":
        target = node.child_by_field_name("value")
    elif node.type in ("required_parameter", "optional_parameter"):
        target = node.child_by_field_name("pattern")
    elif node.type in ("assignment_pattern", "object_assignment_pattern"):
        target = node.child_by_field_name("left")
    else:
        names: list[str] = []
        for child in node.named_children:
            if child.type not in _NON_BINDING:
                names.extend(_binding_names(child))
        return names
    return _binding_names(target) if target is not None else []


def _declaration_target(node: Node) -> Node | None:
    if not node.is_named:
        return None
    kind = node.type
    if kind == "variable_declarator" or kind in _NAMED_DECLARATIONS:
        return node.child_by_field_name("name")
    if kind == "formal_parameters":
        return node
    if kind == "arrow_function":
        return node.child_by_field_name("parameter")
    if kind == "catch_clause":
        return node.child_by_field_name("parameter")
    if kind == "for_in_statement":
        return node.child_by_field_name("left")
    return None


def _local_names(root: Node) -> set[str]:
    local: set[str] = set()
    for node in _walk(root):
        target = _declaration_target(node)
        if target is not None:
            local.update(_binding_names(target))
    return local


def _referenced_names(root: Node) -> Iterator[tuple[str, bool]]:
    """``(name, is_component)`` for every bare call target, constructor and capitalized JSX tag."""
    for node in _walk(root):
        if node.type == "call_expression":
            callee = node.child_by_field_name("function")
        elif node.type == "new_expression":
            callee = node.child_by_field_name("constructor")
        elif node.type in ("jsx_opening_element", "jsx_self_closing_element"):
            name = node.child_by_field_name("name")
            if name is not None and name.type == "identifier" and _text(name)[:1].isupper():
                yield _text(name), True
            continue
        else:
            continue
        if callee is not None and callee.type == "identifier":
            yield _text(callee), False


def _undefined_in(root: Node) -> list[str]:
    local = _local_names(root)
    found: dict[str, None] = {}
    for name, is_component in _referenced_names(root):
        if name in local or is_allowed(name):
            continue
        if not is_component and len(name) <= 1:
            continue
        found.setdefault(name, None)
    return list(found)


def collect_local_definitions(code: str) -> set[str]:
    """Names declared anywhere in ``code``: variables, functions, classes, parameters, catch bindings."""
    return _local_names(parse_tsx(code).root_node)


def find_undefined_references(code: str) -> list[str]:
    """Call targets and component tags that are neither local nor host-provided.

    Order of first appearance is kept; each name is reported once.
    """
    return _undefined_in(parse_tsx(code).root_node)


# ---------------------------------------------------------------------------
# Non-fatal checks
# ---------------------------------------------------------------------------

_ROUNDING_WRAPPERS = frozenset({"Math.round", "Math.floor", "Math.ceil", "Math.trunc"})


def _calls(root: Node, callee_text: str) -> Iterator[Node]:
    for node in _walk(root):
        if node.type == "call_expression":
            callee = node.child_by_field_name("function")
            if callee is not None and _text(callee) == callee_text:
                yield node


def _is_rounded(call: Node) -> bool:
    """True if ``call`` is passed straight to a Math rounding call."""
    arguments = call.parent
    if arguments is None or arguments.type != "arguments":
        return False
    outer = arguments.parent
    callee = outer.child_by_field_name("function") if outer is not None else None
    return callee is not None and _text(callee) in _ROUNDING_WRAPPERS


def _collect_warnings(root: Node) -> list[str]:
    warnings: list[str] = []
    if any(_calls(root, "setInterval")) and not any(_calls(root, "clearInterval")):
        warnings.append("setInterval is used without clearInterval; derive animation state from the frame instead.")
    if any(_calls(root, "Math.random")):
        warnings.append("Math.random() changes on every render; frames will not be deterministic.")
    if any(not _is_rounded(call) for call in _calls(root, "counterSpinUp")):
        warnings.append("counterSpinUp() returns a raw float; wrap it in Math.round() before display.")
    return warnings


def collect_warnings(code: str) -> list[str]:
    return _collect_warnings(parse_tsx(code).root_node)


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------


class ComponentValidator:
    """Rewrites then validates one component source string.

    Non-fatal findings accumulate in ``self.warnings`` across calls.
    """

    def __init__(self) -> None:
        self.warnings: list[str] = []

    def validate(self, code: str | None) -> ValidationResult:
        if not code or not code.strip():
            return ValidationResult(valid=False, error=EMPTY_CODE_ERROR, fixed_code=code or "")

        fixed = rewrite(code)
        root = parse_tsx(fixed).root_node
        warnings = _collect_warnings(root)
        self.warnings.extend(warnings)

        def _fail(error: str, undefined: list[str] | None = None) -> ValidationResult:
            logger.debug("Component rejected: %s", error)
            return ValidationResult(
                valid=False,
                error=error,
                fixed_code=fixed,
                undefined_refs=undefined,
                warnings=warnings or None,
            )

        if not has_entry_symbol(fixed):
            return _fail(MISSING_ENTRY_ERROR)

        syntax_error = _syntax_error(root)
        if syntax_error:
            return _fail(syntax_error)

        undefined = _undefined_in(root)
        if undefined:
            return _fail(
                f"Undefined references: {', '.join(undefined)}. "
                "These functions/components don't exist in the sandbox. "
                "Only use functions listed in the API reference. Do NOT invent functions.",
                undefined,
            )

        if any(_calls(root, "typewriterReveal")) and "visibleChars" not in fixed:
            return _fail(TYPEWRITER_ERROR)

        return ValidationResult(valid=True, fixed_code=fixed, warnings=warnings or None)


def validate_component(code: str | None) -> ValidationResult:
    """Validate ``code`` with a fresh validator."""
    return ComponentValidator().validate(code)
