"""Custom exception classes for the application."""


class ReservationIngestError(Exception):
    """Base exception for all application errors."""

    pass


class ConfigurationError(ReservationIngestError):
    """Exception raised when configuration is invalid or missing."""

    pass


class APIClientError(ReservationIngestError):
    """Exception raised when a generative model call fails."""

    pass


class APITimeoutError(APIClientError):
    """Exception raised when a generative model call times out."""

    pass


class ExtractionError(ReservationIngestError):
    """Exception raised when text cannot be extracted from a document."""

    pass


class InvalidDocumentError(ReservationIngestError):
    """Exception raised when an uploaded document is rejected before processing."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class ReservationStoreError(ReservationIngestError):
    """Exception raised when the reservation store rejects an operation."""

    pass


class InvalidReservationError(ReservationStoreError):
    """Exception raised when a reservation payload fails the insert schema."""

    pass
