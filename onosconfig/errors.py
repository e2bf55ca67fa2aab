"""Exception types raised across the package."""


class ConfigError(Exception):
    """Base class of every error the package raises."""


class InvalidError(ConfigError, ValueError):
    """An argument or a stored object is not valid."""


class NotFoundError(ConfigError, LookupError):
    """The requested object does not exist."""


class AlreadyExistsError(ConfigError):
    """An object with the same key already exists."""


class ConflictError(ConfigError):
    """An optimistic-lock check failed because the object changed."""


class UnauthenticatedError(ConfigError, PermissionError):
    """The caller is not allowed to perform the operation."""


class UnsupportedError(ConfigError):
    """The value or operation is not supported."""