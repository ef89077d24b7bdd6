# status: complete

"""
Error formatting utilities shared by the agent loop and the HTTP routes.
"""

# Exception types whose class name adds nothing for the reader
_PLAIN_TYPES = {"RuntimeError", "Exception", "ValueError"}


class ErrorFormatter:
    """
    Formats error messages consistently across components.
    The same strings are shown to the model (tool failures) and to HTTP clients.
    """

    @staticmethod
    def format_error_message(
        error: Exception,
        context: str = "Operation",
        include_type: bool = True
    ) -> str:
        """
        Format an exception into a user-friendly error message.

        Args:
            error: The exception to format
            context: Context string describing what operation failed
            include_type: Whether to include the exception type in the message

        Returns:
            Formatted error message string
        """
        error_str = str(error) or "no details"
        error_type = type(error).__name__

        if include_type and error_type not in _PLAIN_TYPES:
            return f"{context} failed: [{error_type}] {error_str}"
        return f"{context} failed: {error_str}"

    @staticmethod
    def describe_error(error: Exception) -> str:
        """Short '<Type>: message' form used when relaying a tool failure."""
        error_str = str(error) or "no details"
        error_type = type(error).__name__
        if error_type in _PLAIN_TYPES:
            return error_str
        return f"{error_type}: {error_str}"

    @staticmethod
    def create_error_preview(error_message: str, max_length: int = 200) -> str:
        """Truncate an error message, adding an ellipsis when cut."""
        if len(error_message) <= max_length:
            return error_message

        return error_message[:max_length] + "..."
