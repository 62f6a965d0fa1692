"""AI Project Generator: turns model output into a packaged project tree."""

__version__ = "0.1.0"
