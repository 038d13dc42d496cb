"""Attachment model passed to the messaging backend."""

import base64

from pydantic import BaseModel, Field

PDF_MIMETYPE = "application/pdf"
DEFAULT_PDF_FILENAME = "document.pdf"
DEFAULT_IMAGE_FILENAME = "image.jpg"


class MessageMedia(BaseModel):
    """Base64-encoded file sent as a message attachment."""

    mimetype: str = Field(..., description="MIME type, passed to the backend as given")
    data: str = Field(..., description="Base64-encoded file content")
    filename: str | None = Field(None, description="File name shown to the recipient")

    @classmethod
    def from_bytes(cls, mimetype: str, content: bytes, filename: str | None = None) -> "MessageMedia":
        return cls(mimetype=mimetype, data=base64.b64encode(content).decode("ascii"), filename=filename)

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)
