"""
Conversion of FastAPI uploads to FileUpload.
"""
from typing import List, Optional

from fastapi import UploadFile

from taskory.models import FileUpload


def to_file_uploads(files: Optional[List[UploadFile]], max_size: Optional[int] = None) -> List[FileUpload]:
    """
    Read uploaded files into memory.

    With max_size set, at most max_size + 1 bytes are read per file, enough
    for the attachment service to reject an oversized file.
    """
    limit = max_size + 1 if max_size else -1
    uploads = []
    for upload in files or []:
        if not upload.filename:
            continue
        uploads.append(FileUpload(
            filename=upload.filename,
            content=upload.file.read(limit),
            content_type=upload.content_type,
        ))
    return uploads
