"""
Path validation utilities for the AI project generator.

Provides shared security validation for:
- Project name sanitization
- Normalization of model-supplied relative file paths
- Path traversal prevention when writing to disk

Used by the response parser and the project writer so that nothing the model
emits can address a location outside the project directory.
"""

import re
from pathlib import Path

from aiproj.domain.constants import DEFAULT_PROJECT_NAME


class PathValidationError(Exception):
    """Raised when path validation fails."""
    pass


class PathValidator:
    """Validates and sanitizes file paths and names."""

    # ASCII-only: Unicode letters and spaces are stripped from project names
    PROJECT_NAME_DISALLOWED = re.compile(r'[^A-Za-z0-9_\-\s]', re.ASCII)
    WHITESPACE_RUN = re.compile(r'\s+', re.ASCII)

    # "C:" style drive prefixes
    DRIVE_PATTERN = re.compile(r'^[A-Za-z]:')

    CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')

    # Characters most filesystems reject, replaced rather than refused
    RESERVED_CHARS = re.compile(r'[:*?"<>|]')

    @classmethod
    def sanitize_project_name(cls, name: str | None) -> str:
        """
        Turn a free-form project name into a safe root directory name.

        Characters outside letters, digits, ``_``, ``-`` and whitespace are
        removed, then whitespace runs collapse to a single ``_``.

        Examples:
            >>> PathValidator.sanitize_project_name("My <Cool> App?")
            'My_Cool_App'
            >>> PathValidator.sanitize_project_name("***")
            'project'
        """
        if not name:
            return DEFAULT_PROJECT_NAME

        cleaned = cls.PROJECT_NAME_DISALLOWED.sub('', name.strip())
        cleaned = cls.WHITESPACE_RUN.sub('_', cleaned.strip())

        return cleaned or DEFAULT_PROJECT_NAME

    @classmethod
    def normalize_relative_path(cls, raw: str) -> str:
        """
        Normalize a model-supplied file path to a safe relative form.

        Backslashes become ``/``, leading slashes and empty or ``.`` segments
        are dropped, and characters such as ``:`` or ``*`` become ``_``.

        Raises:
            PathValidationError: If the path is empty after normalization,
                contains ``..``, a drive letter, or control characters

        Examples:
            >>> PathValidator.normalize_relative_path("/src\\\\main/./App.kt")
            'src/main/App.kt'
            >>> PathValidator.normalize_relative_path("../etc/passwd")
            PathValidationError: Parent directory references not allowed
        """
        path = raw.strip().replace('\\', '/')

        if cls.CONTROL_CHARS.search(path):
            raise PathValidationError(
                f"Invalid path: {raw!r}. Control characters not allowed."
            )

        if cls.DRIVE_PATTERN.match(path):
            raise PathValidationError(
                f"Invalid path: {raw!r}. Drive letters not allowed."
            )

        path = cls.RESERVED_CHARS.sub('_', path)
        segments = [s for s in path.split('/') if s and s != '.']

        if '..' in segments:
            raise PathValidationError(
                f"Invalid path: {raw!r}. Parent directory references not allowed."
            )

        if not segments:
            raise PathValidationError("File path cannot be empty")

        return '/'.join(segments)

    @classmethod
    def validate_within_root(cls, file_path: Path, root: Path) -> Path:
        """
        Validate that file_path is within root directory (no path traversal).

        Args:
            file_path: File path to validate
            root: Root directory that must contain file_path

        Returns:
            Resolved file path

        Raises:
            PathValidationError: If file_path escapes root directory
        """
        try:
            file_resolved = file_path.resolve()
            root_resolved = root.resolve()

            file_resolved.relative_to(root_resolved)

            return file_resolved

        except ValueError:
            raise PathValidationError(
                f"Path traversal detected: {file_path} is not within {root}"
            )
