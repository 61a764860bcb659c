"""
Shared FastAPI dependencies.
"""
import json
from typing import Iterable, Type, TypeVar

from fastapi import Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from saasoty.core.errors import ValidationError
from saasoty.db.session import get_db
from saasoty.services.gateway import WorkflowGateway

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_gateway(request: Request, db: Session = Depends(get_db)) -> WorkflowGateway:
    return WorkflowGateway(db, ip_address=request.client.host if request.client else None)


async def read_body(
    request: Request, model: Type[ModelT], json_fields: Iterable[str] = ()
) -> ModelT:
    """
    Parse a JSON or form request body into ``model``.

    Browser clients post ``FormData``; form values named in ``json_fields``
    arrive as JSON strings and are decoded before validation.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        data = dict(form.items())
        for field in json_fields:
            raw = data.pop(field, None)
            if raw in (None, ""):
                continue
            if not isinstance(raw, str):
                raise ValidationError(f"{field} must be a JSON string")
            try:
                data[field] = json.loads(raw)
            except ValueError:
                raise ValidationError(f"{field} is not valid JSON")
    else:
        try:
            data = await request.json()
        except ValueError:
            raise ValidationError("Request body must be JSON or form data")

    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise RequestValidationError(exc.errors())
