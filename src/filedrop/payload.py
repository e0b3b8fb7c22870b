"""Payload and result types shared by the publisher and opener."""

import base64
import binascii
import mimetypes
import re
from dataclasses import dataclass
from pathlib import Path

from .errors import DecodingError, ValidationError

DEFAULT_MEDIA_TYPE = "application/pdf"

# type/subtype with optional +suffix; wildcards are not valid for payloads.
_MEDIA_TYPE_RE = re.compile(
    r"^[a-zA-Z0-9][a-zA-Z0-9!#$&\-^_.+]*/[a-zA-Z0-9][a-zA-Z0-9!#$&\-^_.+]*$"
)

# Leading "data:<type>;base64," prefix produced by browser encoders.
_DATA_URL_RE = re.compile(r"^data:[^,;]*(;[^,]*)?;base64,", re.IGNORECASE)

MIME_OVERRIDES = {
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
}


def detect_mime(path: Path) -> str:
    """Guess the media type of a file from its name."""
    suffix = path.suffix.lower()
    if suffix in MIME_OVERRIDES:
        return MIME_OVERRIDES[suffix]

    mime, _ = mimetypes.guess_type(str(path))
    return mime or "application/octet-stream"


def normalize_media_type(media_type: str | None) -> str:
    """Return a usable media type, defaulting to application/pdf.

    Raises:
        ValidationError: If the media type is not of the form type/subtype.
    """
    if not media_type:
        return DEFAULT_MEDIA_TYPE
    media_type = media_type.strip()
    if not _MEDIA_TYPE_RE.match(media_type):
        raise ValidationError(f"Invalid media type: {media_type!r}")
    return media_type


def validate_name(name: str | None) -> str:
    """Check that a display name can be used as a stored file's identity.

    Raises:
        ValidationError: If the name is missing, empty, or not a plain
            file name.
    """
    if name is None or not str(name).strip():
        raise ValidationError("name is required")
    name = str(name)
    if "/" in name or "\\" in name or "\x00" in name or name in (".", ".."):
        raise ValidationError(f"name must be a plain file name: {name!r}")
    return name


def decode_base64(encoded: str | None) -> bytes:
    """Decode transport base64 into raw bytes.

    Whitespace and line breaks are ignored, as is a leading data URL
    prefix.

    Raises:
        ValidationError: If nothing was supplied.
        DecodingError: If the text is not valid base64.
    """
    if encoded is None:
        raise ValidationError("data is required")
    text = _DATA_URL_RE.sub("", encoded.strip())
    text = "".join(text.split())
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodingError(f"Invalid base64 data: {e}") from e


@dataclass(frozen=True)
class Payload:
    """A named, typed byte payload submitted for publishing."""

    name: str
    data: bytes
    media_type: str = DEFAULT_MEDIA_TYPE

    @classmethod
    def create(
        cls, name: str | None, data: bytes | None, media_type: str | None = None
    ) -> "Payload":
        """Build a validated payload.

        Raises:
            ValidationError: If name or data is missing or empty.
        """
        name = validate_name(name)
        if not data:
            raise ValidationError("data is required")
        return cls(name=name, data=bytes(data), media_type=normalize_media_type(media_type))

    @classmethod
    def from_base64(
        cls, name: str | None, encoded: str | None, media_type: str | None = None
    ) -> "Payload":
        """Build a payload from base64 text, validating the name first."""
        name = validate_name(name)
        return cls.create(name, decode_base64(encoded), media_type)


@dataclass(frozen=True)
class PublishedReference:
    """Capability token returned by a successful publish."""

    uri: str
    is_public: bool = True

    def to_dict(self) -> dict:
        return {"uri": self.uri, "isPublic": self.is_public}


@dataclass(frozen=True)
class ViewRequest:
    """A reference to present to an external viewer."""

    source_reference: str
    media_type: str = DEFAULT_MEDIA_TYPE


@dataclass(frozen=True)
class OpenResult:
    """Outcome of handing a reference to an external viewer."""

    opened: bool
    uri: str | None = None
    viewer: str | None = None

    def to_dict(self) -> dict:
        return {"opened": self.opened}
