"""Normalization of raw scanner payloads into lookup keys."""

from urllib.parse import unquote, urlsplit

from .exceptions import InvalidScanError

# Key columns are VARCHAR(255)
MAX_CODE_LENGTH = 255


def normalize_scanned_code(payload: str) -> str:
    """
    Turn a barcode/QR payload into the key used by every collection.

    Surrounding whitespace is dropped. When the payload is an http(s) URL
    (QR labels often encode a link to the item page), the last non-empty
    path segment is the code.

    Raises:
        InvalidScanError: If nothing usable remains or the code is longer
            than MAX_CODE_LENGTH
    """
    code = (payload or '').strip()

    parts = urlsplit(code)
    if parts.scheme.lower() in ('http', 'https') and parts.netloc:
        segments = [s for s in parts.path.split('/') if s]
        code = unquote(segments[-1]).strip() if segments else ''

    if not code:
        raise InvalidScanError(f"Scanned payload {payload!r} contains no code")

    if len(code) > MAX_CODE_LENGTH:
        raise InvalidScanError(
            f"Scanned code is {len(code)} characters long, the limit is {MAX_CODE_LENGTH}"
        )

    return code
