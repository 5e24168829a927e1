"""API error type

Use case errors are raised as ClientError and rendered as
{"error": {"code": ..., "message": ...}}.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from libs.result import Error


class ClientError(Exception):
    def __init__(self, error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.error = error
        self.status_code = status_code
        super().__init__(error.message)


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "code": exc.error.code,
                "message": exc.error.message,
            }
        },
    )
