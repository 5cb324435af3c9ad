from typing import Optional

NO_FILE_SELECTED = "No file selected"
INVALID_FILE_TYPE = "Please select a valid image file (JPEG, PNG, GIF or WebP)."
EMPTY_FILE = "File cannot be empty"
INVALID_CAPTURE = "Webcam capture could not be read. Please try again."
REQUEST_TIMED_OUT = "Request timed out. Please try again."
NETWORK_ERROR = "Network error. Please check your connection and make sure the analysis service is running."
ENDPOINT_NOT_FOUND = "API endpoint not found. Please check the configuration."
BACKEND_ERROR = "The analysis service encountered an error. Please try again later."
INVALID_RESPONSE_FORMAT = "Invalid response format from server"
ANALYSIS_IN_PROGRESS = "An analysis is already running. Please wait for it to finish."


class ScreeningError(Exception):
    """Base class for every error that ends up as a user-facing message."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidFile(ScreeningError):
    status_code = 422


class AnalysisInProgress(ScreeningError):
    status_code = 409

    def __init__(self, message: str = ANALYSIS_IN_PROGRESS):
        super().__init__(message)


class AnalysisTimeout(ScreeningError):
    status_code = 504

    def __init__(self, message: str = REQUEST_TIMED_OUT):
        super().__init__(message)


class NetworkError(ScreeningError):
    status_code = 502

    def __init__(self, message: str = NETWORK_ERROR):
        super().__init__(message)


class HttpError(ScreeningError):
    status_code = 502

    def __init__(self, upstream_status: int, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.detail = detail

    @classmethod
    def from_status(cls, upstream_status: int, reason: str = "", detail: Optional[str] = None) -> "HttpError":
        if upstream_status == 404:
            return cls(upstream_status, ENDPOINT_NOT_FOUND, detail)
        if upstream_status >= 500:
            return cls(upstream_status, BACKEND_ERROR, detail)
        message = f"HTTP {upstream_status}: {reason}" if reason else f"HTTP {upstream_status}"
        return cls(upstream_status, message, detail)


class InvalidResponse(ScreeningError):
    status_code = 502

    def __init__(self, message: str = INVALID_RESPONSE_FORMAT):
        super().__init__(message)


class RenderError(ScreeningError):
    """Raised inside the renderer only; never propagated past it."""

    status_code = 500
