"""
=============================================================================
MIME TYPES
=============================================================================

Maps file extensions to the Content-Type sent with a served file.

The table is deliberately small. Anything not listed here is sent as
application/octet-stream, which tells the browser "binary data, I don't
know what this is" - typically it offers a download instead of rendering.

    style.css   →  text/css
    notes.md    →  text/plain      (rendered as text, not as markdown)
    photo.jpg   →  image/jpg
    data.bin    →  application/octet-stream   (fallback)

=============================================================================
"""

import os
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional


# =============================================================================
# MIME TYPE TABLE
# =============================================================================
#
# Keys are lowercase and include the dot. The values are sent verbatim,
# without a charset parameter.
#
# =============================================================================

MIME_TYPES: Mapping[str, str] = MappingProxyType({
    ".jpg": "image/jpg",
    ".html": "text/html",
    ".txt": "text/plain",
    ".css": "text/css",
    ".md": "text/plain",
})

# Default MIME type for unknown extensions
DEFAULT_MIME_TYPE = "application/octet-stream"


def get_mime_type(
    path: str | Path,
    table: Optional[Mapping[str, str]] = None,
    default: str = DEFAULT_MIME_TYPE,
) -> str:
    """
    Get the MIME type for a file based on its extension.

    Args:
        path: File path or name with extension.
        table: Extension table to consult. Defaults to MIME_TYPES.
        default: Returned when the extension is missing or unmapped.

    Returns:
        The MIME type string. Never empty.

    Examples:
        >>> get_mime_type("style.css")
        'text/css'

        >>> get_mime_type("PHOTO.JPG")
        'image/jpg'

        >>> get_mime_type("archive.tar.gz")
        'application/octet-stream'
    """
    if table is None:
        table = MIME_TYPES

    extension = os.path.splitext(str(path))[1].lower()  # .HTML → .html
    return table.get(extension) or default
