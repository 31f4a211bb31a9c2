"""
Request payload validation.

Payloads are checked against the pydantic request models before any side
effect. Only the first violated rule is reported back to the client.
"""

from typing import Any, Dict, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from booknest.errors import PayloadValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

_VALUE_ERROR_PREFIX = "Value error, "


def validate_payload(model_cls: Type[ModelT], payload: Any) -> ModelT:
    """
    Validate a decoded JSON payload against a request model.

    Args:
        model_cls: Request model to validate against
        payload: Decoded request body

    Returns:
        The validated model instance

    Raises:
        PayloadValidationError: With the first violated rule as its message
    """
    try:
        return model_cls.model_validate(payload)
    except ValidationError as e:
        raise PayloadValidationError(first_error_message(e.errors())) from e


def first_error_message(errors: Sequence[Dict[str, Any]]) -> str:
    """Render the first pydantic error as a short human-readable message."""
    if not errors:
        return "Invalid request payload"

    error = errors[0]
    error_type = error.get("type", "")
    field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    reason = error.get("msg", "is invalid")
    if reason.startswith(_VALUE_ERROR_PREFIX):
        reason = reason[len(_VALUE_ERROR_PREFIX):]

    if error_type == "json_invalid":
        return "Request body is not valid JSON"
    if not field:
        if error_type == "missing":
            return "Request body is required"
        if error_type in ("dict_type", "model_type"):
            return "Request body must be a JSON object"
        return reason
    if error_type == "missing":
        return f'"{field}" is required'
    if error_type == "extra_forbidden":
        return f'"{field}" is not allowed'
    return f'"{field}" {reason[:1].lower()}{reason[1:]}'


def request_body_openapi(model_cls: Type[BaseModel]) -> Dict[str, Any]:
    """
    OpenAPI fragment documenting a JSON body that is validated by hand.

    Pass it as `openapi_extra` on routes that accept a raw dict body.
    """
    return {
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {
                    "schema": model_cls.model_json_schema(by_alias=True),
                }
            },
        }
    }
