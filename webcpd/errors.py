"""
WebCPD — token-based copy/paste detector for PHP, Twig, JS and CSS
source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""


class WebCpdError(Exception):
    """Base exception for WebCPD."""


class FileProcessingError(WebCpdError):
    """Error processing a source file."""


class TokenizeError(FileProcessingError):
    """Source content could not be tokenized (binary or bad encoding)."""


class ValidationError(WebCpdError):
    """Input validation failed."""


class StrategyNotFoundError(WebCpdError):
    """No tokenizer strategy is registered for a file name pattern."""

    __slots__ = ("pattern",)

    def __init__(self, message: str, *, pattern: str) -> None:
        super().__init__(message)
        self.pattern = pattern


class DetectionTimeoutError(WebCpdError):
    """The detection deadline expired before the run finished."""
