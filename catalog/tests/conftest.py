"""
Pytest configuration and fixtures for catalog tests
"""
import pytest
from typing import AsyncGenerator, Awaitable, Callable
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from catalog.main import create_app
from catalog.db.base import Base
from catalog.db.session import get_db
from catalog.models import Category, Product
from catalog.services.category_service import CategoryService


# Test database URL - use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def test_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a test database session with in-memory SQLite.
    Each test gets a fresh database.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_client(test_db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client with dependency override for database.
    """
    app = create_app(init_db=False)

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def service(test_db: AsyncSession) -> CategoryService:
    return CategoryService(test_db)


@pytest.fixture
def add_product(test_db: AsyncSession) -> Callable[..., Awaitable[Product]]:
    """Assign a product to a category, as the product subsystem would."""
    async def _add(category_id: int, name: str = "Sample product") -> Product:
        product = Product(name=name, category_id=category_id)
        test_db.add(product)
        await test_db.commit()
        return product
    return _add


@pytest.fixture
async def electronics_tree(service: CategoryService) -> dict[str, Category]:
    """Electronics > (Laptops > Gaming Laptops, Phones) and a separate Books root."""
    electronics = await service.create_category("Electronics", "Devices and accessories")
    laptops = await service.create_category("Laptops", parent_id=electronics.id)
    gaming = await service.create_category("Gaming Laptops", parent_id=laptops.id)
    phones = await service.create_category("Phones", parent_id=electronics.id)
    books = await service.create_category("Books")
    return {
        "electronics": electronics,
        "laptops": laptops,
        "gaming": gaming,
        "phones": phones,
        "books": books,
    }
