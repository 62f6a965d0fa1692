"""Stderr state observer for CLI integration."""

import click

from aiproj.domain.models.generation import (
    CallingAI,
    Completed,
    CreatingZip,
    Failed,
    GenerationState,
    Parsing,
    WritingFiles,
)


class StderrStateObserver:
    """Emits states as structured lines to stderr."""

    def on_state(self, state: GenerationState) -> None:
        """Emit state as structured line to stderr."""
        parts = [f"[STATE] {state.kind.value}"]
        if isinstance(state, (CallingAI, Parsing, CreatingZip)):
            parts.append(f"message={state.message!r}")
        elif isinstance(state, WritingFiles):
            parts.append(f"progress={state.progress}/{state.total}")
        elif isinstance(state, Completed):
            parts.append(f"path={state.result.archive_path}")
        elif isinstance(state, Failed):
            parts.append(f"error={state.error.error_type.value}")
            parts.append(f"message={state.error.message!r}")
        click.echo(" ".join(parts), err=True)
