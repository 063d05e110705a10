import math
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    page: int
    per_page: int
    total_records: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_records / self.per_page) if self.per_page else 0

    @property
    def has_more(self) -> bool:
        return self.page < self.total_pages

    def pagination(self) -> dict:
        return {
            "current_page": self.page,
            "per_page": self.per_page,
            "total_records": self.total_records,
            "total_pages": self.total_pages,
            "has_more": self.has_more,
        }
