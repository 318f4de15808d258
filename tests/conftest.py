"""Pytest configuration for scene-codegen tests."""
import sys
from pathlib import Path

import pytest

# Add src directory to Python path so tests can import scene_codegen, services, etc.
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from component_samples import SCENE_ID  # noqa: E402
from scene_codegen.buffer import SceneBufferAccessor  # noqa: E402
from scene_codegen.store import InMemorySceneStore  # noqa: E402


@pytest.fixture
def store():
    store = InMemorySceneStore()
    store.create(SCENE_ID, {"title": "Intro"}, projectId="p-1")
    return store


@pytest.fixture
def accessor(store):
    return SceneBufferAccessor(store, SCENE_ID)


@pytest.fixture
def content(store):
    """Current content map of the test scene."""
    return lambda: store.get(SCENE_ID)["content"]
