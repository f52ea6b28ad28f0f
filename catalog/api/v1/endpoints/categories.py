from fastapi import APIRouter, Query, status

from catalog.core.deps import ActorIdDep, CategoryServiceDep
from catalog.core.exceptions import CategoryHasChildrenError
from catalog.models.category import Category, DeleteOutcome
from catalog.schemas.category import (
    CategoryCreate,
    CategoryDeleteResult,
    CategoryOption,
    CategoryOut,
    CategorySummary,
    CategoryTreeNode,
    CategoryUpdate,
)
from catalog.services.category_service import CategoryService

router = APIRouter()


async def _with_counts(service: CategoryService, categories: list[Category]) -> list[CategoryOut]:
    counts = await service.product_counts(categories)
    return [
        CategoryOut.model_validate(c).model_copy(update={"product_count": counts.get(c.id, 0)})
        for c in categories
    ]


@router.get("", response_model=list[CategoryOut])
async def list_categories(
    service: CategoryServiceDep,
    include_inactive: bool = Query(False),
):
    """Flat list of categories ordered by name"""
    categories = await service.list_categories(include_inactive=include_inactive)
    return await _with_counts(service, categories)


@router.get("/tree", response_model=list[CategoryTreeNode])
async def get_category_tree(
    service: CategoryServiceDep,
    include_inactive: bool = Query(False),
):
    """Top-level categories with their subcategories nested under `children`"""
    return await service.get_tree(include_inactive=include_inactive)


@router.get("/options", response_model=list[CategoryOption])
async def get_category_options(
    service: CategoryServiceDep,
    include_inactive: bool = Query(False),
):
    """Flat listing in tree order with each category's depth, for parent pickers"""
    nodes = await service.get_options(include_inactive=include_inactive)
    return [CategoryOption.model_validate(node) for node in nodes]


@router.get("/{category_id}", response_model=CategoryOut)
async def get_category(category_id: int, service: CategoryServiceDep):
    category = await service.get_category(category_id)
    return (await _with_counts(service, [category]))[0]


@router.get("/{category_id}/children", response_model=list[CategorySummary])
async def get_child_categories(
    category_id: int,
    service: CategoryServiceDep,
    include_inactive: bool = Query(False),
):
    """Direct children of a category. Use id 0 for the top-level categories."""
    return await service.get_children(category_id, include_inactive=include_inactive)


@router.get("/{category_id}/path", response_model=list[CategorySummary])
async def get_category_path(category_id: int, service: CategoryServiceDep):
    """Breadcrumb from the root category down to this one"""
    return await service.get_path(category_id)


@router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    service: CategoryServiceDep,
    actor_id: ActorIdDep,
):
    category = await service.create_category(
        name=data.name,
        description=data.description,
        parent_id=data.parent_id,
        actor_id=actor_id,
    )
    return (await _with_counts(service, [category]))[0]


@router.put("/{category_id}", response_model=CategoryOut)
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    service: CategoryServiceDep,
    actor_id: ActorIdDep,
):
    """Partial update; send `"parent_id": null` to make the category top-level"""
    category = await service.update_category(category_id, actor_id=actor_id, **data.changes())
    return (await _with_counts(service, [category]))[0]


@router.delete("/{category_id}", response_model=CategoryDeleteResult)
async def delete_category(
    category_id: int,
    service: CategoryServiceDep,
    actor_id: ActorIdDep,
):
    """
    Delete a category. A category that still has products is deactivated
    instead; one with child categories is rejected with 409.
    """
    outcome = await service.delete_category(category_id, actor_id=actor_id)
    if outcome == DeleteOutcome.HAS_CHILDREN:
        raise CategoryHasChildrenError(category_id)
    message = (
        "Category deactivated successfully"
        if outcome == DeleteOutcome.DEACTIVATED
        else "Category deleted successfully"
    )
    return CategoryDeleteResult(id=category_id, outcome=outcome, message=message)
