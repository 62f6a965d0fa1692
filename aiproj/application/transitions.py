"""Declarative state transitions for the generation pipeline.

TransitionTable provides an explicit, table-driven state machine:
(current state kind, command) -> next state kind.

Key concepts:
- The happy path is linear: idle -> preparing -> calling_ai -> parsing ->
  writing_files -> creating_zip -> completed
- Every non-terminal working state may "fail"
- Only preparing and calling_ai may be cancelled, which returns to idle
- Terminal states leave only through "reset"
"""

from aiproj.domain.models.generation import GenerationStateKind as K


class Command:
    """Commands the orchestrator issues to move between states."""

    GENERATE = "generate"
    CALL_AI = "call_ai"
    PARSE = "parse"
    WRITE = "write"
    PROGRESS = "progress"  # writing_files -> writing_files with a higher count
    ARCHIVE = "archive"
    COMPLETE = "complete"
    FAIL = "fail"
    CANCEL = "cancel"
    RESET = "reset"


_TransitionKey = tuple[K, str]


class TransitionTable:
    """Declarative state machine for generation transitions.

    Usage:
        target = TransitionTable.get_transition(kind, command)
        if target is None:
            raise InvalidCommand(...)
    """

    _TRANSITIONS: dict[_TransitionKey, K] = {
        # === Happy path ===
        (K.IDLE, Command.GENERATE): K.PREPARING,
        (K.PREPARING, Command.CALL_AI): K.CALLING_AI,
        (K.CALLING_AI, Command.PARSE): K.PARSING,
        (K.PARSING, Command.WRITE): K.WRITING_FILES,
        (K.WRITING_FILES, Command.PROGRESS): K.WRITING_FILES,
        (K.WRITING_FILES, Command.ARCHIVE): K.CREATING_ZIP,
        (K.CREATING_ZIP, Command.COMPLETE): K.COMPLETED,

        # === Failure edges ===
        (K.PREPARING, Command.FAIL): K.FAILED,
        (K.CALLING_AI, Command.FAIL): K.FAILED,
        (K.PARSING, Command.FAIL): K.FAILED,
        (K.WRITING_FILES, Command.FAIL): K.FAILED,
        (K.CREATING_ZIP, Command.FAIL): K.FAILED,

        # === Cancellation (only while waiting on the provider) ===
        (K.PREPARING, Command.CANCEL): K.IDLE,
        (K.CALLING_AI, Command.CANCEL): K.IDLE,

        # === Reset out of terminal states ===
        (K.COMPLETED, Command.RESET): K.IDLE,
        (K.FAILED, Command.RESET): K.IDLE,
    }

    @classmethod
    def get_transition(cls, kind: K, command: str) -> K | None:
        """Get the target state kind for a command, or None if invalid."""
        return cls._TRANSITIONS.get((kind, command))

    @classmethod
    def valid_commands(cls, kind: K) -> list[str]:
        """Get list of valid commands from a state kind."""
        return [cmd for (k, cmd) in cls._TRANSITIONS if k == kind]
