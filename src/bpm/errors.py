"""Exception hierarchy for bpm.

Every error raised on purpose by bpm derives from BpmError so the CLI
can map them to exit codes in one place.
"""


class BpmError(Exception):
    """Base class for all bpm errors."""


class ConfigLoadError(BpmError):
    """Raised when the configuration file cannot be read or validated."""


class ManagerCreateError(BpmError):
    """Raised when the manager cannot be constructed.

    Wraps configuration, directory initialization and state loading
    failures that happen while building a Manager.
    """


class PackageNotFoundError(BpmError):
    """Raised when a package name is not in the registry.

    Attributes:
        name: The package name that was looked up.
    """

    def __init__(self, name: str) -> None:
        """Initialize PackageNotFoundError.

        Args:
            name: The package name that was looked up.
        """
        self.name = name
        super().__init__(f"package not found: {name}")


class ProviderNotFoundError(BpmError):
    """Raised when a package names a provider the manager does not know.

    Attributes:
        provider: The provider key from the package descriptor.
    """

    def __init__(self, provider: str) -> None:
        """Initialize ProviderNotFoundError.

        Args:
            provider: The provider key from the package descriptor.
        """
        self.provider = provider
        super().__init__(f"package provider not found: {provider}")


class ProviderError(BpmError):
    """Base class for provider failures."""


class ProviderConfigError(ProviderError):
    """Raised for malformed locators, invalid patterns or unmatched filters."""


class ProviderFetchError(ProviderError):
    """Raised when a release listing or download fails or finds nothing."""


class MigrationNeededError(BpmError):
    """Raised during normal load when a document uses an old schema.

    Run `bpm migrate` to upgrade the files in place.
    """


class UnknownStateFileVersionError(BpmError):
    """Raised when the state file carries a schema version bpm cannot handle."""

    def __init__(self, version: int) -> None:
        self.version = version
        super().__init__(f"unknown state file version {version}")


class UnknownPackageFileVersionError(BpmError):
    """Raised when a package file carries a schema version bpm cannot handle."""

    def __init__(self, version: int, path: object = None) -> None:
        self.version = version
        self.path = path
        where = f" in {path}" if path is not None else ""
        super().__init__(f"unknown package file version {version}{where}")


class PackageLoadError(BpmError):
    """Raised when a package document cannot be parsed."""


class ExtractionError(BpmError):
    """Base class for archive extraction failures."""


class ExtractionConfigError(ExtractionError):
    """Raised for an invalid bin pattern or an unsupported archive format."""


class NoMatchingEntryError(ExtractionError):
    """Raised when an archive has no regular file matching the bin pattern.

    Attributes:
        pattern: The (expanded) bin pattern that was not satisfied.
    """

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        super().__init__(f"archive does not contain a file matching pattern {pattern}")


class StateLoadError(BpmError):
    """Raised when the state file cannot be parsed."""
