"""
Errors raised by the category subsystem.

Request errors derive from ``ValueError`` like the rest of the service layer
and carry the HTTP status and machine-readable code the API renders.
``CategoryConsistencyError`` marks corrupt stored data and is never the
caller's fault.
"""


class CategoryError(ValueError):
    status_code = 400
    code = "category_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CategoryNotFoundError(CategoryError):
    status_code = 404
    code = "not_found"

    def __init__(self, category_id: int, *, what: str = "Category"):
        super().__init__(f"{what} not found with id: {category_id}")
        self.category_id = category_id


class DuplicateCategoryNameError(CategoryError):
    status_code = 409
    code = "duplicate_name"

    def __init__(self, name: str):
        super().__init__(f"Category with name '{name}' already exists")
        self.name = name


class InvalidCategoryNameError(CategoryError):
    status_code = 422
    code = "invalid_name"


class InvalidCategoryHierarchyError(CategoryError):
    status_code = 400
    code = "invalid_hierarchy"


class CategoryHasChildrenError(CategoryError):
    status_code = 409
    code = "has_children"

    def __init__(self, category_id: int):
        super().__init__(
            f"Cannot delete category {category_id} while it has child categories"
        )
        self.category_id = category_id


class CategoryConsistencyError(RuntimeError):
    status_code = 500
    code = "consistency_error"
