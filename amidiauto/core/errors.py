"""Domain-specific errors for amidiauto."""

import errno


class AmidiautoError(Exception):
    """Base error for amidiauto."""


class RuleValidationError(AmidiautoError):
    """Raised when a rule pattern is empty or misuses the wildcard."""


class ConfigLoadError(AmidiautoError):
    """Raised when reading a rules file fails."""


class ConfigValidationError(AmidiautoError):
    """Raised when a rules file does not conform to schema or syntax."""


class SequencerError(AmidiautoError):
    """Base sequencer error carrying a negative errno-style code."""

    def __init__(self, message: str, code: int = -errno.EIO) -> None:
        super().__init__(message)
        self.code = code


class SequencerInitError(SequencerError):
    """Raised when the sequencer cannot be opened or monitored."""


class SequencerIOError(SequencerError):
    """Raised when the announcement stream is lost."""


class EndpointQueryError(SequencerError):
    """Raised when metadata for an announced port cannot be fetched."""


class LinkRequestError(SequencerError):
    """Raised when a subscription between two ports could not be made."""
