"""Exception types raised by Speak Coach."""


class SpeakCoachError(Exception):
    """Base class for all Speak Coach errors."""


class GenerationError(SpeakCoachError):
    """The phrase/feedback generation collaborator failed or returned nothing usable."""


class SessionBusyError(SpeakCoachError):
    """A recording was requested while another attempt is still in flight."""


class NoPhraseError(SpeakCoachError):
    """A recording was requested before any phrase was loaded."""


class InvalidCredentialError(SpeakCoachError):
    """An identity token could not be decoded into a user profile."""
