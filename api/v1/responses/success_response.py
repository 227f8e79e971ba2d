from typing import Any, Optional
from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_response(
    status_code: int = status.HTTP_200_OK,
    message: str = "Success",
    data: Optional[Any] = None,
) -> JSONResponse:
    content = {"success": True, "status_code": status_code, "message": message}
    if data is not None:
        content["data"] = data

    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))
