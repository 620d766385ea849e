"""Request models for the decision wheel API."""

from pydantic import BaseModel, Field


class AddOptionRequest(BaseModel):
    text: str


class SpinRequest(BaseModel):
    forced_index: int | None = Field(default=None, ge=0)


class ProfileRequest(BaseModel):
    name: str


class SaveWheelRequest(BaseModel):
    name: str


class SuggestionRequest(BaseModel):
    topic: str
    apply: bool = True
