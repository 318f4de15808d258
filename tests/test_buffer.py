"""Tests for the progressive code buffer."""
import pytest

from component_samples import SCENE_ID, VALID_COMPONENT
from scene_codegen.buffer import (
    EMPTY_BUFFER_HINT,
    EXHAUSTED_HINT,
    SceneBufferAccessor,
    build_preview,
    edit_code,
    read_code,
    splice_lines,
    write_code,
)
from scene_codegen.errors import SceneNotFoundError, StaleBufferError


def _strip_numbers(content: str) -> list[str]:
    return [line.split("| ", 1)[1] for line in content.split("\n")]


class TestWrite:
    def test_full_write_reports_stats(self, accessor, content):
        result = write_code(accessor, "a\nbb\nccc")
        assert result["success"] is True
        assert result["totalLines"] == 3
        assert result["totalChars"] == 8
        assert result["preview"] == "1| a\n2| bb\n3| ccc"
        assert content()["codeBuffer"] == "a\nbb\nccc"

    def test_write_marks_generating_and_clears_artifact(self, store, accessor, content):
        store.update_content(SCENE_ID, {
            "generationStatus": "ready",
            "generatedCode": VALID_COMPONENT,
            "generationError": "old",
        })
        write_code(accessor, "x")
        fields = content()
        assert fields["generationStatus"] == "generating"
        assert "generatedCode" not in fields
        assert "generationError" not in fields

    def test_full_write_resets_attempts_but_range_write_does_not(self, store, accessor, content):
        store.update_content(SCENE_ID, {"validationAttempts": 2, "codeBuffer": "a\nb"})
        write_code(accessor, "c", start_line=1, end_line=2)
        assert content()["validationAttempts"] == 2
        write_code(accessor, "fresh")
        assert content()["validationAttempts"] == 0

    def test_range_write_after_exhaustion_warns(self, store, accessor):
        store.update_content(SCENE_ID, {"validationAttempts": 3, "generationStatus": "error", "codeBuffer": "a\nb"})
        result = write_code(accessor, "c", start_line=1, end_line=2)
        assert result["warning"] == EXHAUSTED_HINT
        assert "warning" not in write_code(accessor, "fresh")

    def test_range_write_with_attempts_left_has_no_warning(self, store, accessor):
        store.update_content(SCENE_ID, {"validationAttempts": 2, "codeBuffer": "a\nb"})
        assert "warning" not in write_code(accessor, "c", start_line=1)

    def test_unrelated_fields_preserved(self, store, accessor):
        write_code(accessor, "x")
        record = store.get(SCENE_ID)
        assert record["content"]["title"] == "Intro"
        assert record["projectId"] == "p-1"

    def test_missing_scene(self, store):
        with pytest.raises(SceneNotFoundError):
            write_code(SceneBufferAccessor(store, "missing"), "x")


class TestSplice:
    BUFFER = "a\nb\nc\nd"

    @pytest.mark.parametrize(
        ("code", "start", "end", "expected"),
        [
            ("X\nY", 1, 3, "a\nX\nY\nd"),        # replace range
            ("X", 1, None, "a\nX\nb\nc\nd"),      # insert
            ("X", None, 1, "X\nb\nc\nd"),         # from the top
            ("X", 10, 20, "a\nb\nc\nd\nX"),       # clamped to the end
            ("X", -3, 0, "X\na\nb\nc\nd"),        # clamped to the start
            ("X", 3, 1, "a\nb\nc\nX\nd"),         # end before start inserts
            ("", 1, 3, "a\nd"),                   # empty code deletes
        ],
    )
    def test_splice(self, code, start, end, expected):
        assert splice_lines(self.BUFFER, code, start, end) == expected

    def test_splice_into_empty_buffer(self):
        assert splice_lines("", "x\ny", 5, 9) == "x\ny"

    def test_ranged_write_persists(self, accessor, content):
        write_code(accessor, self.BUFFER)
        result = write_code(accessor, "X", start_line=1, end_line=2)
        assert content()["codeBuffer"] == "a\nX\nc\nd"
        assert result["totalLines"] == 4


class TestPreview:
    def test_small_buffer_shown_whole(self):
        assert build_preview("a\nb", 5) == "1| a\n2| b"

    def test_large_buffer_head_and_tail(self):
        text = "\n".join(f"line{i}" for i in range(1, 21))
        preview = build_preview(text, 5).split("\n")
        assert preview[:5] == [f"{i}| line{i}" for i in range(1, 6)]
        assert preview[5] == "... (10 lines omitted) ..."
        assert preview[6:] == [f"{i}| line{i}" for i in range(16, 21)]

    def test_empty(self):
        assert build_preview("", 5) == ""


class TestEdit:
    def test_edit_hit_is_exact(self, accessor, content):
        write_code(accessor, "a\nb\nc")
        result = edit_code(accessor, "b", "B")
        assert result["success"] is True
        assert result["matchLine"] == 2
        assert result["totalLines"] == 3
        assert result["totalChars"] == 5
        assert content()["codeBuffer"] == "a\nB\nc"

    def test_edit_miss_is_inert(self, store, accessor, content):
        write_code(accessor, "a\nb\nc")
        version = store.get(SCENE_ID)["version"]
        result = edit_code(accessor, "zzz", "y")
        assert result["success"] is False
        assert result["error"] == "oldString not found in buffer"
        assert result["totalLines"] == 3
        assert result["totalChars"] == 5
        assert result["preview"] == "1| a\n2| b\n3| c"
        assert store.get(SCENE_ID)["version"] == version
        assert content()["codeBuffer"] == "a\nb\nc"

    def test_empty_old_string_rejected(self, accessor):
        write_code(accessor, "a")
        result = edit_code(accessor, "", "x")
        assert result["success"] is False

    def test_only_first_occurrence_replaced(self, accessor, content):
        write_code(accessor, "x = 1\ny = 1\nx = 1")
        result = edit_code(accessor, "x = 1", "x = 2")
        assert content()["codeBuffer"] == "x = 2\ny = 1\nx = 1"
        assert result["matchLine"] == 1
        assert result["occurrences"] == 2

    def test_multiline_match_reports_start_line(self, accessor, content):
        write_code(accessor, "a\nb\nc\nd")
        result = edit_code(accessor, "c\nd", "C")
        assert result["matchLine"] == 3
        assert content()["codeBuffer"] == "a\nb\nC"

    def test_edit_after_exhaustion_warns(self, store, accessor):
        write_code(accessor, "a")
        store.update_content(SCENE_ID, {"validationAttempts": 3})
        result = edit_code(accessor, "a", "b")
        assert result["success"] is True
        assert result["warning"] == EXHAUSTED_HINT

    def test_edit_marks_generating(self, store, accessor, content):
        write_code(accessor, "a")
        store.update_content(SCENE_ID, {"generationStatus": "error", "generationError": "boom"})
        edit_code(accessor, "a", "b")
        assert content()["generationStatus"] == "generating"
        assert "generationError" not in content()


class TestRead:
    def test_round_trip(self, accessor):
        write_code(accessor, VALID_COMPONENT)
        lines = VALID_COMPONENT.split("\n")
        result = read_code(accessor, 0, len(lines) + 5)
        assert _strip_numbers(result["content"]) == lines
        assert result["content"].split("\n")[0].startswith("1| ")
        assert result["startLine"] == 0
        assert result["endLine"] == len(lines)
        assert result["totalLines"] == len(lines)
        assert result["hasMore"] is False

    def test_window(self, accessor):
        write_code(accessor, "\n".join(f"l{i}" for i in range(10)))
        result = read_code(accessor, 2, 3)
        assert result["content"] == "3| l2\n4| l3\n5| l4"
        assert result["startLine"] == 2
        assert result["endLine"] == 5
        assert result["hasMore"] is True

    def test_defaults_read_everything(self, accessor):
        write_code(accessor, "a\nb")
        result = read_code(accessor)
        assert result["content"] == "1| a\n2| b"

    def test_start_past_end_is_clamped(self, accessor):
        write_code(accessor, "\n".join(f"l{i}" for i in range(10)))
        result = read_code(accessor, 50, 5)
        assert result["startLine"] == 10
        assert result["endLine"] == 10
        assert result["content"] == ""
        assert result["hasMore"] is False

    def test_empty_buffer_returns_hint(self, accessor):
        result = read_code(accessor, 0, 10)
        assert result["success"] is True
        assert result["totalLines"] == 0
        assert result["content"] == ""
        assert result["hasMore"] is False
        assert result["message"] == EMPTY_BUFFER_HINT


def test_stale_snapshot_is_rejected(store, accessor):
    write_code(accessor, "a")
    snapshot = accessor.load()
    write_code(accessor, "b")
    with pytest.raises(StaleBufferError):
        accessor.save({"codeBuffer": "lost"}, snapshot.version)
    assert store.get(SCENE_ID)["content"]["codeBuffer"] == "b"
