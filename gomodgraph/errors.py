class GomodgraphError(Exception):
    """Base class for recoverable errors reported to the user."""


class ConfigError(GomodgraphError):
    pass


class CacheError(GomodgraphError):
    """The downloaded mod files cannot be enumerated or decoded."""


class BackendError(GomodgraphError):
    """The hosting platform could not be queried for projects."""


class ModFileParseError(GomodgraphError):
    pass


class RenderError(GomodgraphError):
    """Graphviz failed to produce an image."""


class SubgraphOfSubgraphError(RuntimeError):
    """
    Raised when a subgraph is derived from a graph that is already a subgraph.

    This signals a bug in the caller, hence it is not a GomodgraphError.
    """
