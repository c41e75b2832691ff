from typing import List, TypeVar, Generic
from pydantic import BaseModel

T = TypeVar('T')


class PaginatedResponse(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    size: int
    has_next: bool
    has_previous: bool
    total_pages: int


def to_page(result: dict, schema) -> dict:
    """Convert a BaseService.get_paginated result into response-ready items"""
    return {**result, "items": [schema.model_validate(item) for item in result["items"]]}
