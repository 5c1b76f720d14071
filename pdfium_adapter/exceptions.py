"""
Custom exceptions for the PDFium adapter.

Page-level operations never raise these; they degrade to empty results.
Backends raise them at document level and the session translates them into
:class:`pdfium_adapter.types.OpenResult` values.
"""


class PDFiumAdapterError(Exception):
    """Base exception for all PDFium adapter errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def default_message(self) -> str:
        return "An unknown PDFium adapter error occurred."


class InvalidPDFError(PDFiumAdapterError):
    """Raised when a PDF file is missing, unreadable or corrupted."""

    @property
    def default_message(self) -> str:
        return "Invalid or corrupted PDF file."


class PasswordRequiredError(PDFiumAdapterError):
    """Raised by a backend when the document needs a (different) password."""

    @property
    def default_message(self) -> str:
        return "PDF is encrypted and cannot be opened without the correct password."


class DocumentClosedError(PDFiumAdapterError):
    """Raised when a closed or locked document is used."""

    @property
    def default_message(self) -> str:
        return "The PDF document is closed or locked."


class LibraryError(PDFiumAdapterError):
    """Raised when the backend library cannot be initialised or released."""

    @property
    def default_message(self) -> str:
        return "The PDF backend library is in an invalid state."
