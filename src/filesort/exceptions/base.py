from __future__ import annotations


class FilesortError(Exception):
    """Base exception class for all filesort-specific errors.

    This is the root of the filesort exception hierarchy. Catching it at the
    CLI boundary handles every error the engine or its collaborators raise
    on purpose, while system exceptions propagate naturally.

    Attributes:
        message: Human-readable error message describing what went wrong.

    Example:
        ```python
        try:
            engine.render(template, context)
        except FilesortError as e:
            logger.error("render_failed", error=e.message)
            sys.exit(1)
        ```
    """

    def __init__(self, message: str) -> None:
        """Initialize the FilesortError.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)
