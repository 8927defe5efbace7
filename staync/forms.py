"""Request body validation against pydantic models.

Bodies may arrive as JSON or as form data (urlencoded or multipart); both
are flattened to a dict and validated by the same model.

Usage:
    form = Form(TweetCreate, request)
    data = await form.require()  # raises ValidationException (400)

    if await form.validate():
        ...
    else:
        form.first_error
"""

from __future__ import annotations

from typing import Any, Generic, Type, TypeVar

from litestar import Request
from litestar.datastructures import UploadFile
from litestar.exceptions import ValidationException
from pydantic import BaseModel, ValidationError

from staync.lib.hooks import hooks

T = TypeVar("T", bound=BaseModel)

FORM_ERROR = "__form__"


def _message(err: dict) -> str:
    field_name = str(err["loc"][0]) if err.get("loc") else None
    if err.get("type") == "missing" and field_name:
        return f"{field_name} is required"
    msg = str(err.get("msg", "Invalid input"))
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return msg


async def read_payload(request: Request) -> dict[str, Any]:
    """The request body as a plain dict. Repeated form keys become lists."""
    media_type = request.content_type[0] if request.content_type else ""
    if media_type == "application/json":
        body = await request.body()
        if not body.strip():
            return {}
        data = await request.json()
        if not isinstance(data, dict):
            raise ValidationException("Request body must be a JSON object")
        return data

    form_data = await request.form()
    values: dict[str, Any] = {}
    for key in form_data.keys():
        items = [v for v in form_data.getall(key) if not isinstance(v, UploadFile)]
        if not items:
            continue
        values[key] = items[0] if len(items) == 1 else items
    return values


class Form(Generic[T]):
    def __init__(self, model: Type[T], request: Request, *, name: str | None = None):
        self.model = model
        self.request = request
        self.name = name or model.__name__
        self.data: T | None = None
        self.errors: dict[str, str] = {}
        self.values: dict[str, Any] = {}

    async def validate(self) -> bool:
        """Read and validate the body. On failure ``errors`` holds one message per field."""
        self.errors = {}
        self.data = None
        self.values = await read_payload(self.request)

        try:
            self.data = self.model.model_validate(self.values)
        except ValidationError as e:
            for err in e.errors():
                field_name = str(err["loc"][0]) if err["loc"] else FORM_ERROR
                if field_name not in self.errors:
                    self.errors[field_name] = _message(err)
            return False

        self.data = await hooks.apply_filters(f"form_{self.name}_validated", self.data)
        return True

    @property
    def first_error(self) -> str | None:
        return next(iter(self.errors.values()), None)

    async def require(self) -> T:
        """Validated data, or a 400 carrying the first validation message."""
        if not await self.validate():
            raise ValidationException(self.first_error or "Invalid request")
        return self.data
