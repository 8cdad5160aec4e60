"""
Framework-neutral representation of an uploaded file.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class FileUpload:
    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)
