"""
Domain model for files received with a request.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class UploadedFile:
    """
    A file taken out of a multipart request, fully read into memory.

    The transport layer builds these; services never see the framework's
    upload objects.
    """

    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)
