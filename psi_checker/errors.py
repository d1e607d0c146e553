class PageSpeedError(Exception):
    """Base class for every error the CLI reports as a one-line message."""


class InvalidUrlError(PageSpeedError):
    pass


class SlugFileNotFoundError(PageSpeedError):
    pass


class EmptySlugListError(PageSpeedError):
    pass


class ConfigError(PageSpeedError):
    pass


class AnalysisError(PageSpeedError):
    """A single URL could not be analyzed. Callers isolate it per URL."""


class SessionNotFoundError(PageSpeedError):
    pass
