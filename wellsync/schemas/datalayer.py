"""Pydantic schemas for the cross-device data layer endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field


class DataItemBody(BaseModel):
    payload: dict[str, int | float | str]


class DataItemResponse(BaseModel):
    path: str
    payload: dict[str, int | float | str]
    source_node: str
    seq: int
    published_at: datetime


class DataItemsResponse(BaseModel):
    items: list[DataItemResponse] = Field(default_factory=list)
    latest_seq: int = 0
