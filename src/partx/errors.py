"""Exception taxonomy.

Configuration and wiring mistakes are programmer errors: they are raised at
the call that caused them and never recovered inside the package.
"""


class PartError(Exception):
    """Base class for every error raised by partx."""


class PartConfigError(PartError, ValueError):
    """Malformed part, partitioner or reducer configuration."""


class CompositionError(PartConfigError):
    """A stateful part was composed into a second owner."""


class UnknownPartError(PartError, LookupError):
    """A part action targeted a part the store was not built with."""


class InvalidListenerError(PartError, TypeError):
    """A listener passed to subscribe was not callable."""
