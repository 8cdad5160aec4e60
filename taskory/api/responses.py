"""
Response envelope shared by every endpoint.
"""
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success(data: Any = None, message: str = "Success", status_code: int = 200) -> JSONResponse:
    """{"status": "success", "message": ..., "data": ...}"""
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "success",
            "message": message,
            "data": jsonable_encoder(data if data is not None else []),
        },
    )
