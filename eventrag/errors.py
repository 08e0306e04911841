"""Exceptions raised by the retrieval pipeline."""


class EventRagError(Exception):
    """Base class for package errors."""


class RetrievalError(EventRagError):
    """The query embedding could not be produced; the query cannot be served."""


class InvalidEmbeddingError(RetrievalError):
    """The embedding provider returned something that is not a vector."""
