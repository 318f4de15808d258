"""Tests for the entity store adapters."""
import json

import pytest

from scene_codegen.errors import SceneCodegenError, SceneNotFoundError, StaleBufferError
from scene_codegen.store import (
    InMemorySceneStore,
    JsonFileSceneStore,
    build_store,
    validate_scene_id,
)


@pytest.fixture(params=["memory", "json"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return InMemorySceneStore()
    return JsonFileSceneStore(str(tmp_path / "scenes"))


class TestSceneStore:
    def test_create_and_get(self, any_store):
        any_store.create("s1", {"title": "Intro"}, projectId="p")
        record = any_store.get("s1")
        assert record["id"] == "s1"
        assert record["version"] == 0
        assert record["content"] == {"title": "Intro"}
        assert record["projectId"] == "p"

    def test_get_missing_returns_none(self, any_store):
        assert any_store.get("nope") is None

    def test_update_merges_and_bumps_version(self, any_store):
        any_store.create("s1", {"title": "Intro", "codeBuffer": "x"})
        version = any_store.update_content("s1", {"codeBuffer": "y", "generationStatus": "generating"})
        assert version == 1
        assert any_store.get("s1")["content"] == {
            "title": "Intro",
            "codeBuffer": "y",
            "generationStatus": "generating",
        }

    def test_none_removes_key(self, any_store):
        any_store.create("s1", {"generatedCode": "x", "title": "t"})
        any_store.update_content("s1", {"generatedCode": None})
        assert any_store.get("s1")["content"] == {"title": "t"}

    def test_expected_version_mismatch_raises_and_writes_nothing(self, any_store):
        any_store.create("s1", {"codeBuffer": "a"})
        any_store.update_content("s1", {"codeBuffer": "b"}, expected_version=0)
        with pytest.raises(StaleBufferError) as excinfo:
            any_store.update_content("s1", {"codeBuffer": "c"}, expected_version=0)
        assert excinfo.value.actual_version == 1
        assert any_store.get("s1")["content"]["codeBuffer"] == "b"

    def test_update_missing_scene(self, any_store):
        with pytest.raises(SceneNotFoundError):
            any_store.update_content("ghost", {"codeBuffer": "x"})

    def test_returned_record_is_a_copy(self, any_store):
        any_store.create("s1", {"codeBuffer": "a"})
        any_store.get("s1")["content"]["codeBuffer"] = "mutated"
        assert any_store.get("s1")["content"]["codeBuffer"] == "a"


class TestJsonFileSceneStore:
    def test_writes_one_file_per_scene_without_temp_leftovers(self, tmp_path):
        store = JsonFileSceneStore(str(tmp_path))
        store.create("intro-01", {"title": "t"})
        store.update_content("intro-01", {"codeBuffer": "x"})
        assert sorted(p.name for p in tmp_path.iterdir()) == ["intro-01.json"]
        data = json.loads((tmp_path / "intro-01.json").read_text(encoding="utf-8"))
        assert data["version"] == 1
        assert data["content"]["codeBuffer"] == "x"

    def test_invalid_json_is_reported(self, tmp_path):
        (tmp_path / "bad.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(SceneCodegenError):
            JsonFileSceneStore(str(tmp_path)).get("bad")

    def test_requires_path(self):
        with pytest.raises(ValueError):
            JsonFileSceneStore("")


@pytest.mark.parametrize("scene_id", ["", "../etc/passwd", "a/b", "-lead", "x" * 200])
def test_unsafe_scene_ids_rejected(scene_id):
    with pytest.raises(SceneCodegenError):
        validate_scene_id(scene_id)


def test_build_store_selects_adapter(tmp_path, monkeypatch):
    monkeypatch.delenv("SCENE_CODEGEN_STORE_PATH", raising=False)
    assert isinstance(build_store(), InMemorySceneStore)
    assert isinstance(build_store(str(tmp_path)), JsonFileSceneStore)
    monkeypatch.setenv("SCENE_CODEGEN_STORE_PATH", str(tmp_path))
    assert isinstance(build_store(), JsonFileSceneStore)
