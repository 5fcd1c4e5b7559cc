"""Image payloads returned by the image generator."""

from dataclasses import dataclass


@dataclass(frozen=True)
class GeneratedImage:
    """Base64 image bytes with their MIME type."""

    mime_type: str
    data_b64: str

    def to_data_url(self) -> str:
        """Return the image as a data URL."""
        return f"data:{self.mime_type};base64,{self.data_b64}"
