class StrongholdError(Exception):
    """Base exception for stronghold save/load errors."""


class ConfigurationError(StrongholdError):
    """Raised when the home directory cannot be determined from the environment."""


class PlatformUnsupported(StrongholdError, NotImplementedError):
    """Raised on platforms with no home-directory convention (Android, iOS, WASI, ...)."""


class InvalidIdentifier(StrongholdError, ValueError):
    """Raised when an application id or resource name cannot be used as a path segment."""


class SerializationError(StrongholdError):
    """Raised when a value cannot be encoded by the serializer."""


class SaveError(StrongholdError):
    """Base exception for recoverable save failures."""


class WriteFailure(SaveError):
    """Raised when the destination could not be created or written (e.g. disk full)."""


class LoadError(StrongholdError):
    """Base exception for recoverable load failures."""


class SaveNotFound(LoadError):
    """Raised when no save exists at the destination. This is the normal first-run state."""


class CorruptSaveError(LoadError):
    """Raised when a save exists but is foreign, from another format version, or damaged."""


class SchemaMismatchError(LoadError):
    """Raised when the stored value does not match the requested type."""
