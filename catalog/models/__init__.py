# Import all models to ensure they are registered with SQLAlchemy
from catalog.models.category import Category, DeleteOutcome
from catalog.models.product import Product
from catalog.models.audit_log import AuditLog

__all__ = [
    "Category",
    "DeleteOutcome",
    "Product",
    "AuditLog",
]
