"""
B-Go Admin — Pydantic Models
Request/Response schemas for the admin API.
"""
from pydantic import BaseModel, Field
from typing import Optional, Union


# ── Conductors ──

class ConductorCreateRequest(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""
    busNumber: Union[int, str] = ""
    route: str = ""
    plateNumber: str = ""

    def to_form(self) -> dict:
        return self.model_dump()


class ConductorUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2)
    busNumber: Optional[int] = Field(default=None, gt=0)
    route: Optional[str] = Field(default=None, min_length=3)
    plateNumber: Optional[str] = Field(default=None, min_length=1)
    busAvailabilityStatus: Optional[str] = None

    def to_update(self) -> dict:
        return self.model_dump(exclude_none=True)


class ConductorStatusRequest(BaseModel):
    is_online: bool


class ConductorLocationRequest(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: Optional[float] = None
    speed: Optional[float] = None
    heading: Optional[float] = None


# ── System ──

class CacheInvalidateRequest(BaseModel):
    date: Optional[str] = None  # None clears every cache


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = ""
    environment: str = ""
