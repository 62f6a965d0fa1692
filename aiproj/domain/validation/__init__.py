"""Domain validation utilities."""

from .path_validator import PathValidator, PathValidationError

__all__ = ["PathValidator", "PathValidationError"]
