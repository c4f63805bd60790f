import json
from typing import Any, Tuple, Type

from pydantic import BaseModel, ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse


def json_response(status_code: int, content: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content)


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


async def parse_payload(request: Request, model: Type[BaseModel]) -> Tuple[bool, Any]:
    """
    Parse and validate a JSON request body.

    Args:
        request: The incoming request
        model: The pydantic model describing the accepted payload

    Returns:
        (True, validated model) on success, or (False, 400 response) when the
        body is not strict JSON (``NaN`` and ``Infinity`` included) or does
        not match the model
    """
    body = await request.body()
    try:
        data = json.loads(body, parse_constant=_reject_constant)
    except ValueError:
        return False, json_response(400, {"error": "Invalid JSON body"})

    try:
        return True, model.model_validate(data)
    except ValidationError as e:
        return False, json_response(400, {
            "error": "Invalid request body",
            "details": e.errors(include_url=False, include_context=False),
        })
