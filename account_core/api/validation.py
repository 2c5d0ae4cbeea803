"""Request validation decorator for Flask endpoints.

@validate_request inspects the endpoint's signature. A parameter annotated
with a Pydantic model is filled from the JSON body (or form data); path
parameters pass through untouched.

    @bp.post("/login")
    @validate_request
    def login(data: LoginRequest):
        ...

Validation failures raise ValidationError with the Pydantic error list in
details. Input values are never echoed back, since bodies carry passwords.
"""

import inspect
from functools import wraps

from flask import request
from pydantic import BaseModel, ValidationError as PydanticValidationError

from ..exceptions import ValidationError


def _model_params(f) -> dict[str, type[BaseModel]]:
    params = {}
    for name, param in inspect.signature(f).parameters.items():
        annotation = param.annotation
        if inspect.isclass(annotation) and issubclass(annotation, BaseModel):
            params[name] = annotation
    return params


def _request_payload() -> dict | None:
    if request.is_json:
        payload = request.get_json(silent=True)
        return payload if isinstance(payload, dict) else None
    if request.form:
        return request.form.to_dict()
    return None


def validate_request(f):
    model_params = _model_params(f)

    @wraps(f)
    def wrapper(*args, **kwargs):
        if model_params:
            payload = _request_payload()
            if payload is None:
                raise ValidationError(
                    "Request body must be a JSON object",
                    {"content_type": request.content_type}
                )

            for name, model in model_params.items():
                try:
                    kwargs[name] = model.model_validate(payload)
                except PydanticValidationError as e:
                    raise ValidationError(
                        "Invalid request data",
                        {"errors": e.errors(include_url=False, include_context=False, include_input=False)}
                    )

        return f(*args, **kwargs)

    return wrapper
