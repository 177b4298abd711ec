from typing import Generic, Self, TypeVar

from pydantic import BaseModel, Field, computed_field

T = TypeVar("T", bound=BaseModel)


class PaginationParams(BaseModel):
    page: int = Field(1, ge=1)
    page_size: int = Field(50, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class Pagination(BaseModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int

    @classmethod
    def from_params(cls, items: list[T], total: int, params: PaginationParams) -> Self:
        return cls(items=items, total=total, page=params.page, page_size=params.page_size)

    @computed_field
    @property
    def total_pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size

    @computed_field
    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


class ErrorResponse(BaseModel):
    """Body of a denial issued before the request reaches a route."""

    error: str
    code: str
    banned: bool = False
