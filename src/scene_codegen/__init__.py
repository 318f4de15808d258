"""Progressive generation, validation and bounded retry for scene components.

This package owns five fields inside a scene's ``content`` map
(``codeBuffer``, ``generationStatus``, ``generationError``,
``generatedCode``, ``validationAttempts``) and everything that moves them.
"""

from .buffer import SceneBufferAccessor, edit_code, read_code, write_code
from .errors import SceneBindingError, SceneCodegenError, SceneNotFoundError, StaleBufferError
from .models import GenerationStatus, SceneCodeState, ValidationResult
from .retry import BoundedRetry, ExhaustionPolicy, RetryDecision
from .rewriter import rewrite
from .state_machine import GenerationStateMachine
from .store import InMemorySceneStore, JsonFileSceneStore, SceneStore
from .validator import ComponentValidator, validate_component

__all__ = [
    "BoundedRetry",
    "ComponentValidator",
    "ExhaustionPolicy",
    "GenerationStateMachine",
    "GenerationStatus",
    "InMemorySceneStore",
    "JsonFileSceneStore",
    "RetryDecision",
    "SceneBindingError",
    "SceneBufferAccessor",
    "SceneCodeState",
    "SceneCodegenError",
    "SceneNotFoundError",
    "SceneStore",
    "StaleBufferError",
    "ValidationResult",
    "edit_code",
    "read_code",
    "rewrite",
    "validate_component",
    "write_code",
]
