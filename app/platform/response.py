from typing import Any, Dict, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def api_response(
    *,
    data: Optional[Any] = None,
    message: str = "Operation successful",
    status_code: int = status.HTTP_200_OK,
    headers: Optional[Dict[str, str]] = None,
    **extra: Any,
) -> JSONResponse:
    """
    Single source of truth for ALL API responses.
    Automatically sets status = "success" if < 400 else "error".
    Extra keyword arguments become top-level keys (e.g. count, exists, error).
    """
    success = status_code < 400
    content = {
        "status_code": status_code,
        "status": "success" if success else "error",
        "success": success,
        "message": message,
        "data": jsonable_encoder(data),
    }
    content.update(jsonable_encoder(extra))

    return JSONResponse(status_code=status_code, content=content, headers=headers)
