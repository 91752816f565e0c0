"""Custom exceptions for templating context."""

from typing import Optional


class DescriptorError(ValueError):
    """
    Exception raised when a (resolved) descriptor cannot be decoded.

    This is the only fatal error class of the templating context. It covers
    invalid JSON and a root value that is not an object.

    Attributes:
        message: Error description
        source: Where the descriptor came from (file path or "<content>")
        snippet: The text around the failure point
        original_error: The underlying decode error, if any
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        snippet: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.source = source
        self.snippet = snippet
        self.original_error = original_error

        parts = [message]

        if source:
            parts.append(f"\nDescriptor: {source}")

        if original_error:
            parts.append(f"\nOriginal error: {str(original_error)}")

        if snippet:
            # Truncate snippet if too long
            snippet = snippet[:200] + "..." if len(snippet) > 200 else snippet
            parts.append(f"\nNear:\n{snippet}")

        super().__init__("\n".join(parts))
