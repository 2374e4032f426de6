class CardMakerError(Exception):
    """Base class for errors surfaced to the user as a banner message."""


class GenerationError(CardMakerError):
    """The language model call failed or its reply could not be used."""

    def __init__(self, message: str, status_code: int | None = None, raw_text: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.raw_text = raw_text


class PersistenceError(CardMakerError):
    """AnkiConnect rejected a note or could not be reached."""


class SyncWarning(CardMakerError):
    """AnkiWeb sync failed. Logged only, never shown to the user."""


class ValidationError(CardMakerError):
    """Rejected before any network call: blank term, nothing selected, etc."""


class WorkflowBusyError(CardMakerError):
    """A generate or approve request arrived while another one is running."""
