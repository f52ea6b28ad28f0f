from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalog.models.category import DeleteOutcome


def _clean_name(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("Category name must not be empty")
    return v.strip()


class CategoryBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate category name - trim whitespace"""
        return _clean_name(v)


class CategoryCreate(CategoryBase):
    parent_id: int | None = Field(default=None, description="ID of parent category for subcategories")


class CategoryUpdate(BaseModel):
    """
    Partial update. Only fields present in the request body are applied;
    an explicit ``"parent_id": null`` moves the category to the top level.
    """
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    parent_id: int | None = None
    is_active: bool | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _clean_name(v)

    def changes(self) -> dict:
        """Fields the caller actually supplied, with null name/is_active dropped"""
        data = self.model_dump(exclude_unset=True)
        for key in ("name", "is_active"):
            if key in data and data[key] is None:
                del data[key]
        return data


class CategoryOut(BaseModel):
    id: int
    name: str
    description: str | None
    parent_id: int | None
    is_active: bool
    product_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CategorySummary(BaseModel):
    """Simplified category for nested listings and breadcrumbs"""
    id: int
    name: str
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class CategoryOption(BaseModel):
    """One row of the indented "choose a parent" listing"""
    id: int
    name: str
    parent_id: int | None
    is_active: bool
    depth: int

    model_config = ConfigDict(from_attributes=True)


class CategoryTreeNode(BaseModel):
    id: int
    name: str
    description: str | None = None
    parent_id: int | None = None
    is_active: bool = True
    product_count: int = 0
    depth: int = 0
    children: list[CategoryTreeNode] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class CategoryDeleteResult(BaseModel):
    id: int
    outcome: DeleteOutcome
    message: str


CategoryTreeNode.model_rebuild()
