"""Core exception types for fn-templates."""


class TemplateSyncError(Exception):
    """Base exception for all fn-templates errors."""
    pass


class InvalidReferenceError(TemplateSyncError):
    """Raised when a branch, tag or commit reference is malformed."""
    pass


class InvalidSourceError(TemplateSyncError):
    """Raised when a repository is neither a git remote nor a local path."""
    pass


class RetrievalError(TemplateSyncError):
    """Raised when git (or the template store) cannot be reached or fails."""
    pass


class RefNotFoundError(TemplateSyncError):
    """Raised when a requested ref is absent from the cloned history."""
    pass


class PersistFailedError(TemplateSyncError):
    """Raised when a bundle or its meta.json cannot be written."""
    pass


class AllProtectedError(TemplateSyncError):
    """Raised when a write was required but every bundle already existed."""

    def __init__(self, protected):
        self.protected = list(protected)
        super().__init__(
            f"unable to overwrite the following: {', '.join(self.protected)}"
        )


class TemplateSourceMissingError(TemplateSyncError):
    """Raised when a template has no source and the store does not know it."""
    pass


class StackConfigError(TemplateSyncError):
    """Raised when the stack file cannot be read or parsed."""
    pass
