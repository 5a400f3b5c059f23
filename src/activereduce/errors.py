"""
Exception hierarchy for activereduce
"""


class ActiveReduceError(Exception):
    """Base class for all activereduce errors."""


class ConfigurationError(ActiveReduceError):
    """Invalid or conflicting reduction options, detected at setup."""


class LabelParseError(ActiveReduceError):
    """Malformed label or example line."""

    def __init__(self, message: str, text: str = ""):
        super().__init__(message)
        self.text = text


class CheckpointError(ActiveReduceError):
    """A model checkpoint could not be written."""

    def __init__(self, message: str, filename: str = ""):
        super().__init__(message)
        self.filename = filename
