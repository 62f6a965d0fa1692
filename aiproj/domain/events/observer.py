"""Generation state observer protocol."""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from aiproj.domain.models.generation import GenerationState


class GenerationObserver(Protocol):
    """Protocol for generation state observers."""

    def on_state(self, state: "GenerationState") -> None:
        """Handle a published state. Must not throw or block."""
        ...
