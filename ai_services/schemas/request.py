from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, Optional

ALLOWED_METHODS = {"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"}


class StreamRequest(BaseModel):
    method: str = Field(default="POST")
    url: str = Field(min_length=1)
    headers: Dict[str, str] = Field(default_factory=dict)
    params: Dict[str, Any] = Field(default_factory=dict)
    # str/bytes go out as the raw body, anything else is JSON-encoded
    data: Optional[Any] = None
    timeout: Optional[float] = Field(default=None, gt=0)

    @field_validator("method")
    @classmethod
    def _check_method(cls, value: str) -> str:
        method = value.upper()
        if method not in ALLOWED_METHODS:
            raise ValueError(f"unsupported HTTP method: {value}")
        return method
