"""
Turns repository results and domain errors into outcomes the HTTP layer can send.
"""

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from errors import AppError, Empty


class Outcome(BaseModel):
    status_code: int
    body: Any = None


def success(body: Any, status_code: int = 200) -> Outcome:
    if isinstance(body, BaseModel):
        body = body.model_dump(by_alias=True)
    return Outcome(status_code=status_code, body=body)


def failure(error: AppError) -> Outcome:
    if isinstance(error, Empty):
        return Outcome(status_code=error.status_code)
    return Outcome(status_code=error.status_code, body=error.message)


def to_response(outcome: Outcome) -> Response:
    if outcome.body is None:
        return Response(status_code=outcome.status_code)
    return JSONResponse(status_code=outcome.status_code, content=jsonable_encoder(outcome.body))
