"""Exception types raised inside the relay and its integrations."""


class RelayError(Exception):
    """Base class for relay errors."""


class SchedulingError(RelayError):
    """A call to the scheduling backend failed. The message is safe to show to a caller."""


class SchedulingNotConfiguredError(SchedulingError):
    """The scheduling backend is missing credentials."""


class ToolArgumentError(RelayError):
    """A tool was called with arguments that cannot be used."""
