from __future__ import annotations
from typing import Any, Dict, Generic, Optional, TypeVar
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Wire models: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Envelope(BaseModel, Generic[T]):
    """Every response body: {success, message, data?, meta?}."""
    success: bool
    message: str
    data: Optional[T] = None
    meta: Optional[Dict[str, Any]] = None

    @classmethod
    def ok(cls, data: Optional[T] = None, message: str = "Success", meta: Optional[Dict[str, Any]] = None):
        return cls(success=True, message=message, data=data, meta=meta)

    @classmethod
    def error(cls, message: str = "Error", meta: Optional[Dict[str, Any]] = None):
        return cls(success=False, message=message, meta=meta)
