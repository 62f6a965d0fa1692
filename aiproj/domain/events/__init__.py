"""Generation state stream and observers."""

from aiproj.domain.events.observer import GenerationObserver
from aiproj.domain.events.stream import GenerationStateStream
from aiproj.domain.events.stderr_observer import StderrStateObserver

__all__ = [
    "GenerationObserver",
    "GenerationStateStream",
    "StderrStateObserver",
]
