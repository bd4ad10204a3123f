"""Validate raw payloads against the pydantic schemas."""

from typing import Any, Mapping, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..core.errors import ValidationFailure

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_payload(model: Type[ModelT], payload: Mapping[str, Any]) -> ModelT:
    """Build ``model`` from ``payload`` or raise ``ValidationFailure``.

    The message lists every failing field, e.g.
    ``"email: Value error, Must use a valid email address"``.
    """
    try:
        return model.model_validate(dict(payload))
    except ValidationError as exc:
        problems = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error["loc"])
            problems.append(f"{location}: {error['msg']}" if location else error["msg"])
        raise ValidationFailure("; ".join(problems)) from exc
