class DiagnosisError(Exception):
    """Base class for failures of the diagnosis matcher."""


class InitializationError(DiagnosisError):
    """The embedding model or the Knowledge Base could not be loaded."""


class NotInitializedError(DiagnosisError):
    """An embedding was requested before the store finished initializing."""


class InvalidInputError(DiagnosisError, ValueError):
    """Reserved for stricter input validation; not raised today."""
