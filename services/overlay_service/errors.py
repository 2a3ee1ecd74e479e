class OverlayError(Exception):
    """Base error for the overlay pipeline. `status_code` is the HTTP status reported to clients."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ClientInputError(OverlayError):
    """Request body is malformed or lacks required fields."""

    status_code = 400


class RemoteFetchError(OverlayError):
    """Outbound image fetch failed, timed out or returned a non-2xx status."""

    def __init__(self, url: str, message: str):
        super().__init__(message)
        self.url = url


class DecodeError(OverlayError):
    """Fetched bytes are not a decodable raster image."""

    def __init__(self, url: str, message: str):
        super().__init__(message)
        self.url = url


class RenderError(OverlayError):
    """Drawing or PNG encoding failed."""


class PayloadTooLargeError(OverlayError):
    """Request body exceeds MAX_REQUEST_SIZE_MB."""

    status_code = 413
