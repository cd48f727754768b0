from .static import StaticFileHandler, PathTraversalError

__all__ = [
    "StaticFileHandler",
    "PathTraversalError",
]
