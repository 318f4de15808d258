"""Tests for the component source rewriter."""
import pytest

from scene_codegen.rewriter import (
    canonicalize_entry_symbol,
    fix_destructured_aggregates,
    fix_spread_string_helpers,
    fix_theme_paths,
    fix_typewriter_length,
    has_entry_symbol,
    rewrite,
    strip_directives,
    strip_exports,
    strip_imports,
)

MESSY_SOURCE = '''"use client";
import React from "react";
import {
  interpolate,
  spring,
} from "remotion";
import type { FC } from "react";
import "./styles.css";

export default function Widget({ content, theme }) {
  const { typo } = getTypography(theme);
  const title = content.title;
  const tw = typewriterReveal(frame, 5, title);
  return (
    <div style={{ ...depthShadow(2), color: theme.brandColors.primary }}>
      {title.slice(0, tw.visibleChars)}
    </div>
  );
}
'''


class TestStripModuleSyntax:
    def test_strips_value_type_and_bare_imports(self):
        """Single-line, multi-line, type-only and side-effect imports are removed."""
        out = strip_imports(MESSY_SOURCE)
        assert "import" not in out
        assert "export default function Widget" in out

    def test_dynamic_import_is_kept(self):
        """import() calls are expressions, not module syntax."""
        code = 'const mod = import("./x");'
        assert strip_imports(code) == code

    def test_export_prefixes_removed_declarations_kept(self):
        code = (
            "export default function Widget() {}\n"
            "export const a = 1;\n"
            "export { a };\n"
            "export default Widget;"
        )
        out = strip_exports(code)
        assert "export" not in out
        assert "function Widget() {}" in out
        assert "const a = 1;" in out
        assert "Widget;" not in out.replace("function Widget", "")

    @pytest.mark.parametrize("directive", ['"use client";', "'use client'", '"use server";'])
    def test_directives_removed(self, directive):
        out = strip_directives(f"{directive}\nconst x = 1;")
        assert "use " not in out
        assert out.endswith("const x = 1;")


class TestEntrySymbol:
    def test_single_candidate_is_renamed(self):
        code = "function Widget({content, theme}) {\n  return null;\n}"
        out = canonicalize_entry_symbol(code)
        assert out.startswith("function GeneratedComponent({content, theme})")

    def test_reversed_fields_and_type_annotation(self):
        code = "function Card({ theme, content }: Props) { return null; }"
        assert canonicalize_entry_symbol(code).startswith("function GeneratedComponent(")

    def test_arrow_component_is_renamed(self):
        code = "const Widget = ({ content, theme }) => null;"
        assert canonicalize_entry_symbol(code) == "const GeneratedComponent = ({ content, theme }) => null;"

    def test_two_candidates_are_left_alone(self):
        code = "function A({ content, theme }) {}\nfunction B({ theme, content }) {}"
        assert canonicalize_entry_symbol(code) == code

    def test_existing_entry_symbol_is_not_duplicated(self):
        code = "function Helper({ content, theme }) {}\nfunction GeneratedComponent(props) {}"
        assert canonicalize_entry_symbol(code) == code

    def test_nested_function_is_not_a_candidate(self):
        code = "function outer() {\n  function Inner({ content, theme }) {}\n}"
        assert canonicalize_entry_symbol(code) == code

    def test_other_signatures_are_not_candidates(self):
        code = "function Widget({ content }) { return null; }"
        assert canonicalize_entry_symbol(code) == code
        assert not has_entry_symbol(code)


class TestHelperMisuse:
    def test_spread_string_helper_becomes_property(self):
        code = "style={{ ...depthShadow(2), padding: 4 }}"
        assert fix_spread_string_helpers(code) == "style={{ boxShadow: depthShadow(2), padding: 4 }}"

    @pytest.mark.parametrize("name", ["typo", "typography"])
    def test_destructured_aggregate_binds_whole_object(self, name):
        code = f"const {{ {name} }} = getTypography(theme);"
        assert fix_destructured_aggregates(code) == f"const {name} = getTypography(theme);"

    def test_typewriter_text_becomes_length(self):
        assert fix_typewriter_length("typewriterReveal(frame, 10, title)") == (
            "typewriterReveal(frame, 10, title.length)"
        )

    def test_typewriter_numeric_count_unchanged(self):
        code = "typewriterReveal(frame, 10, 42)"
        assert fix_typewriter_length(code) == code

    def test_theme_paths(self):
        code = (
            "theme.brandColors.foreground theme.brandColors.primary "
            "theme.foreground theme.palette.accent"
        )
        assert fix_theme_paths(code) == (
            "theme.colors.text theme.colors.primary theme.colors.text theme.colors.accent"
        )


class TestRewrite:
    def test_full_pass(self):
        out = rewrite(MESSY_SOURCE)
        assert "function GeneratedComponent({ content, theme })" in out
        assert "import" not in out
        assert "use client" not in out
        assert "const typo = getTypography(theme);" in out
        assert "typewriterReveal(frame, 5, title.length)" in out
        assert "boxShadow: depthShadow(2)" in out
        assert "theme.colors.primary" in out

    def test_idempotent(self):
        once = rewrite(MESSY_SOURCE)
        assert rewrite(once) == once

    def test_exported_import_removed_in_one_pass(self):
        code = 'export import x from "y";\nfunction GeneratedComponent({ content, theme }) {\n  return null;\n}'
        once = rewrite(code)
        assert "import" not in once
        assert rewrite(once) == once

    def test_clean_code_unchanged(self):
        code = "function GeneratedComponent({ content, theme }) {\n  return null;\n}"
        assert rewrite(code) == code
