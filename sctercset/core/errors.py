"""Exception hierarchy for sctercset."""


class SctercsetError(Exception):
    """Base class for errors that abort a sctercset command."""
    pass


class RegistryError(SctercsetError):
    """Raised when the drive registry cannot be read or written."""
    pass


class ConfigError(SctercsetError):
    """Raised for invalid configuration files or values."""
    pass
