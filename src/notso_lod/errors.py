"""Exception types raised by notso-lod."""


class NotsoLodError(Exception):
    """Base class for all notso-lod errors."""


class ConfigError(NotsoLodError, ValueError):
    """Invalid or inconsistent LOD configuration (user-correctable)."""


class SimplificationError(NotsoLodError, RuntimeError):
    """The simplifier produced output that cannot be used for an LOD level."""


class UnsupportedFeatureError(NotsoLodError, NotImplementedError):
    """Input asset uses something this tool cannot read or round-trip."""
