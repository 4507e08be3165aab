# app/schemas/commons_schemas.py
"""
Shared schemas used across several APIs
"""

from pydantic import BaseModel, ConfigDict
from typing import Optional


# Partial-update payloads keep unknown camelCase keys so services can read them
class FlexiblePayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    def to_payload(self) -> dict:
        return self.model_dump(exclude_unset=True)


class BaseResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    service: str
    timestamp: str
    environment: str
