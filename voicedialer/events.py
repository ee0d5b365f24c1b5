"""
Event types for the recognition session.

RecognizerEvent mirrors the codes an acoustic engine returns from
advance(); SessionState is the session's own state machine.
"""

from enum import Enum, IntEnum, auto


class RecognizerEvent(IntEnum):
    """Events returned by Recognizer.advance()."""

    INVALID = 0
    NO_MATCH = 1
    INCOMPLETE = 2
    STARTED = 3
    STOPPED = 4
    START_OF_VOICING = 5
    END_OF_VOICING = 6
    SPOKE_TOO_SOON = 7
    RECOGNITION_RESULT = 8
    START_OF_UTTERANCE_TIMEOUT = 9
    RECOGNITION_TIMEOUT = 10
    NEED_MORE_AUDIO = 11
    MAX_SPEECH = 12

    @classmethod
    def describe(cls, event) -> str:
        """Human-readable name for an event code, known or not."""
        try:
            return f"EVENT_{cls(event).name}"
        except ValueError:
            return f"EVENT_UNKNOWN({event})"


# Events that just mean "keep advancing"
CONTINUE_EVENTS = frozenset({
    RecognizerEvent.INCOMPLETE,
    RecognizerEvent.STARTED,
    RecognizerEvent.START_OF_VOICING,
    RecognizerEvent.END_OF_VOICING,
})


class SessionState(Enum):
    """State machine for one recognize() call."""

    IDLE = auto()             # No call in progress; handles retained
    GRAMMAR_READY = auto()    # Recognizer and grammar available
    LISTENING = auto()        # Audio open, recognizer started
    EVALUATING = auto()       # Inside the advance() loop
    SUCCEEDED = auto()        # Result parsed into at least one action
    FAILED = auto()           # No actions, or unknown engine event
    ERRORED = auto()          # Exception or cancellation

