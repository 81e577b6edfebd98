from typing import Dict, List, Optional, TypedDict, Union

# Tool-protocol error codes (JSON-RPC reserved range)
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class SourceDetails(TypedDict, total=False):
    """Type-safe details for image source errors."""

    source: str
    path: str
    url: str
    status_code: int
    content_type: str
    error: str


class FormatDetails(TypedDict, total=False):
    """Type-safe details for format errors."""

    requested_format: str
    detected_format: str
    supported_formats: List[str]
    error: str


class StorageDetails(TypedDict, total=False):
    """Type-safe details for storage backend errors."""

    service: str
    bucket: str
    key: str
    missing_fields: List[str]
    error: str


ErrorDetails = Union[
    SourceDetails,
    FormatDetails,
    StorageDetails,
    Dict[str, Union[str, int, float, bool, List[str]]],
]


class ImageWorkerError(Exception):
    """Base exception for all image worker errors."""

    def __init__(
        self,
        message: str,
        error_code: int,
        status_code: int = 500,
        details: Optional[ErrorDetails] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}


class InvalidParamsError(ImageWorkerError):
    """Raised when caller-supplied data is malformed, missing or contradictory."""

    def __init__(self, message: str, details: Optional[ErrorDetails] = None):
        super().__init__(
            message=message,
            error_code=INVALID_PARAMS,
            status_code=400,
            details=details,
        )


class InvalidInputError(InvalidParamsError):
    """Raised when the supplied image cannot be read, decoded or is unsupported."""


class InternalError(ImageWorkerError):
    """Raised when an external dependency (filesystem, network, storage) fails."""

    def __init__(self, message: str, details: Optional[ErrorDetails] = None):
        super().__init__(
            message=message,
            error_code=INTERNAL_ERROR,
            status_code=500,
            details=details,
        )
