class ModelServiceError(Exception):
    """The generative model service could not be reached or refused the request."""


class PersistenceError(Exception):
    """A lesson record could not be written to the store."""


class SandboxError(Exception):
    """A lesson module could not be loaded into its execution scope."""


class RenderError(Exception):
    """A loaded lesson failed while rendering or handling an event."""
