"""Response envelopes shared by all routes"""
from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Every success body carries the request's correlation id next to the data"""

    requestId: str
    data: T


class ListEnvelope(BaseModel, Generic[T]):
    requestId: str
    data: List[T]


class MessageResponse(BaseModel):
    requestId: str
    message: str


class ErrorResponse(BaseModel):
    """Shape of every error body (rendered by the handlers in ``shopdesk.main``)"""

    requestId: str
    error: str
    message: str
