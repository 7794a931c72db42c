class ConfigurationError(ValueError):
    """Raised when a tracker cannot be constructed from the given arguments."""


class MissingArgumentError(ConfigurationError):
    """Raised when a required collaborator or identifier is missing."""


class InvalidIdentifierError(ConfigurationError):
    """Raised when a client/app name contains non-alphanumeric characters."""
