"""Exceptions raised inside the scene code pipeline.

The dispatcher converts every one of these into a structured error
response; none of them cross the tool boundary.
"""
from __future__ import annotations


class SceneCodegenError(Exception):
    """Base class for pipeline errors."""

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class SceneNotFoundError(SceneCodegenError):
    def __init__(self, scene_id: str):
        super().__init__(f"Scene not found: {scene_id}")
        self.scene_id = scene_id


class StaleBufferError(SceneCodegenError):
    """The scene was written by someone else between our read and our write."""

    def __init__(self, scene_id: str, expected_version: int, actual_version: int):
        super().__init__(
            "Scene was modified concurrently",
            f"scene {scene_id}: expected version {expected_version}, found {actual_version}. "
            "Call read_code to refresh, then retry.",
        )
        self.scene_id = scene_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class SceneBindingError(SceneCodegenError):
    """A tool call addressed a scene other than the one the server is bound to."""

    def __init__(self, bound_scene_id: str, requested_scene_id: str):
        super().__init__(
            "Scene id mismatch",
            f"This server is bound to scene '{bound_scene_id}'; omit sceneId or pass that value.",
        )
        self.bound_scene_id = bound_scene_id
        self.requested_scene_id = requested_scene_id
