"""
Error types raised below the recognition session.

The session converts every one of these into an Error outcome after
running cleanup; the two Failure outcomes (no actions, unrecognized
event) are plain strings, not exceptions.
"""


class VoiceDialerError(Exception):
    """Base class for voice dialer errors."""


class RecognizerUnavailable(VoiceDialerError):
    """The acoustic engine could not be constructed."""


class AudioIOFailure(VoiceDialerError):
    """Opening, reading or parsing the audio source failed."""


class GrammarBuildFailure(VoiceDialerError):
    """The compiled grammar or open-entry index could not be built or saved."""


class CacheCorruption(GrammarBuildFailure):
    """A persisted open-entry index could not be read back."""


class Cancelled(VoiceDialerError):
    """Cooperative cancellation was observed."""

    def __init__(self, where: str = ""):
        self.where = where
        super().__init__(f"interrupted{' during ' + where if where else ''}")


NO_ACTIONS_GENERATED = "No Intents generated"
