"""Constants and configuration values for the image worker."""

from typing import Dict, Tuple

# Formats
SUPPORTED_INPUT_FORMATS = (
    "jpeg",
    "jpg",
    "png",
    "webp",
    "avif",
    "tiff",
    "gif",
    "heic",
    "heif",
)
SUPPORTED_OUTPUT_FORMATS = ("jpeg", "png", "webp", "avif")
DEFAULT_OUTPUT_FORMAT = "jpeg"

# Pillow reports some formats under container names
PIL_FORMAT_ALIASES: Dict[str, str] = {
    "mpo": "jpeg",
    "jpg": "jpeg",
    "tif": "tiff",
}

# HEIF container signatures, read from bytes 4..12 of the ftyp box
HEIF_SIGNATURES: Tuple[bytes, ...] = (
    b"ftypheic",
    b"ftypheix",
    b"ftyphevc",
    b"ftyphevx",
    b"ftypmif1",
    b"ftypmsf1",
)
HEIF_SIGNATURE_OFFSET = 4
HEIF_SIGNATURE_END = 12
HEIF_DETECTED_FORMAT = "heic"

# Transform defaults
DEFAULT_QUALITY = 80
DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 600
DEFAULT_FIT = "contain"
MIN_DIMENSION = 1
MAX_DIMENSION = 10000

FIT_STRATEGIES = ("cover", "contain", "fill", "inside", "outside")
POSITIONS = (
    "centre",
    "center",
    "north",
    "east",
    "south",
    "west",
    "northeast",
    "southeast",
    "southwest",
    "northwest",
)

# Pillow centering tuples for each anchor position
POSITION_CENTERING: Dict[str, Tuple[float, float]] = {
    "centre": (0.5, 0.5),
    "center": (0.5, 0.5),
    "north": (0.5, 0.0),
    "east": (1.0, 0.5),
    "south": (0.5, 1.0),
    "west": (0.0, 0.5),
    "northeast": (1.0, 0.0),
    "southeast": (1.0, 1.0),
    "southwest": (0.0, 1.0),
    "northwest": (0.0, 0.0),
}

# Filter operations, in the order they are applied
FILTER_ORDER = (
    "rotate",
    "flip",
    "flop",
    "grayscale",
    "blur",
    "sharpen",
    "gamma",
    "negate",
    "normalize",
    "threshold",
    "trim",
)

# Upload content types, keyed by lower-case file extension
EXTENSION_TO_CONTENT_TYPE: Dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "avif": "image/avif",
    "tiff": "image/tiff",
    "heic": "image/heic",
    "heif": "image/heif",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_EXTENSION = "jpg"

# Sources
SOURCE_FILE = "file"
SOURCE_URL = "url"
SOURCE_BASE64 = "base64"
INLINE_PLACEHOLDER_FILENAME = "image"
MAX_INPUT_SIZE = 50 * 1024 * 1024  # 50MB

# Upload services
SUPPORTED_UPLOAD_SERVICES = ("s3", "cloudflare", "gcloud")
DEFAULT_UPLOAD_SERVICE = "s3"
DEFAULT_S3_REGION = "us-east-1"
DEFAULT_R2_REGION = "auto"
GCS_PUBLIC_HOST = "https://storage.googleapis.com"
S3_MAX_TAGS = 10

# Probe error codes that mean "object does not exist"
NOT_FOUND_ERROR_CODES = frozenset({"404", "NotFound", "NoSuchKey"})
