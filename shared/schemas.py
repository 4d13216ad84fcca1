import math
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ActionResult(BaseModel):
    success: bool
    message: str
    redirect_to: Optional[str] = None
    data: Any = None

    @classmethod
    def ok(cls, message: str, **kwargs) -> "ActionResult":
        return cls(success=True, message=message, **kwargs)

    @classmethod
    def fail(cls, message: str, **kwargs) -> "ActionResult":
        return cls(success=False, message=message, **kwargs)


class Page(BaseModel, Generic[T]):
    data: List[T]
    total_pages: int


def total_pages(count: int, limit: int) -> int:
    return math.ceil(count / limit) if limit > 0 else 0


def page_offset(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * limit


def active_filter(value: Optional[str]) -> Optional[str]:
    """Listing filters treat an empty value or 'all' as no filter."""
    if value is None or value.strip() == "" or value == "all":
        return None
    return value.strip()
