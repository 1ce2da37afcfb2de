"""Exceptions raised by quizembed."""


class QuizError(Exception):
    """Base exception for quizembed errors."""

    pass


class DefinitionIOError(QuizError):
    """A quiz definition file could not be read."""

    pass


class DefinitionFormatError(QuizError):
    """A quiz definition file is not valid structured data."""

    pass


class EncodeError(QuizError):
    """A loaded value cannot be represented as JSON."""

    pass


class ConfigError(QuizError):
    """The run configuration is malformed."""

    pass
