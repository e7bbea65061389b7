from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def send_success(data=None, message: str | None = None, status_code: int = 200) -> JSONResponse:
    body = {"success": True, "data": data, "statusCode": status_code}
    if message is not None:
        body["message"] = message
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def send_paginated_success(data: list, pagination: dict, message: str | None = None, status_code: int = 200) -> JSONResponse:
    body = {"success": True, "data": data, "pagination": pagination}
    if message is not None:
        body["message"] = message
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def send_error(message: str, status_code: int = 500, *, error: str | None = None, details=None, headers=None) -> JSONResponse:
    body = {
        "success": False,
        "message": message,
        "error": error or message,
        "statusCode": status_code,
    }
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)
