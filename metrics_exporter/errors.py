"""Exception types shared by the config core and the reporting layer."""


class ExporterError(Exception):
    """Base class for all exporter errors."""


class ConfigurationError(ExporterError):
    """Configuration cannot be used by the component that asked for it."""


class MissingConfigValueError(ConfigurationError):
    """A required key is absent from the current snapshot."""

    def __init__(self, key: str):
        super().__init__(f"required configuration value {key!r} is not set")
        self.key = key


class InvalidConfigValueError(ConfigurationError):
    """A known key holds a value that does not parse to its declared type."""

    def __init__(self, key: str, value: str, reason: str):
        super().__init__(f"invalid value {value!r} for {key!r}: {reason}")
        self.key = key
        self.value = value
        self.reason = reason


class PropertiesFormatError(ExporterError, ValueError):
    """The backing properties file is malformed."""
