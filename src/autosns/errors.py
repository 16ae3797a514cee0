"""Exception types raised by the autosns package."""


class AutoSNSError(Exception):
    """Base class for autosns errors."""


class ConfigurationError(AutoSNSError, ValueError):
    """Raised at construction time when a producer cannot be wired.

    Missing collaborators (no SNS client and no client factory) are fatal
    immediately rather than on first publish.
    """
