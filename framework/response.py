from typing import Any, Generic, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")

class ResponseModel(BaseModel, Generic[T]):
    """JSON envelope: business code, message, payload. ResponseModel[X] documents the payload type."""
    code: int = 200
    message: str = "success"
    data: Optional[T] = None

    @staticmethod
    def success(data: Any = None, message: str = "success") -> dict:
        return {"code": 200, "message": message, "data": data}

    @staticmethod
    def fail(code: int = 400, message: str = "error", data: Any = None) -> dict:
        return {"code": code, "message": message, "data": data}
