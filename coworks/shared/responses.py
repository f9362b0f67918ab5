"""Response envelope helpers"""

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_response(data: Any = None, message: str = "Success", status_code: int = 200):
    """Wrap a payload in the {success, message, data} envelope"""
    body = {"success": True, "message": message, "data": jsonable_encoder(data)}
    if status_code != 200:
        return JSONResponse(status_code=status_code, content=body)
    return body


def error_body(message: str, data: Optional[Any] = None, errors: Optional[list] = None) -> dict:
    body = {"success": False, "message": message}
    if data is not None:
        body["data"] = jsonable_encoder(data)
    if errors is not None:
        body["errors"] = jsonable_encoder(errors)
    return body
