"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tisorah_admin.models import Base, Category, Product, QuoteRequest
from tisorah_admin.services.storage_service import StorageService

STORAGE_BASE = "https://storage.test/storage/v1/object/public/tisorah/products"


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest_asyncio.fixture
async def session_factory():
    """In-memory SQLite engine shared across sessions of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(session_factory):
    """Create an in-memory SQLite database session for testing."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def sample_categories(test_db: AsyncSession) -> dict:
    """Two main branches, each with one primary and one secondary child.

    Gourmet (edible) > Chocolates > Truffles
    Tech (non_edible) > Gadgets > Speakers
    """
    gourmet = Category(name="Gourmet", slug="gourmet", level="main", type="edible")
    tech = Category(name="Tech", slug="tech", level="main", type="non_edible")
    test_db.add_all([gourmet, tech])
    await test_db.flush()

    chocolates = Category(name="Chocolates", slug="chocolates", level="primary", parent_id=gourmet.id)
    gadgets = Category(name="Gadgets", slug="gadgets", level="primary", parent_id=tech.id)
    test_db.add_all([chocolates, gadgets])
    await test_db.flush()

    truffles = Category(name="Truffles", slug="truffles", level="secondary", parent_id=chocolates.id)
    speakers = Category(name="Speakers", slug="speakers", level="secondary", parent_id=gadgets.id)
    test_db.add_all([truffles, speakers])
    await test_db.commit()

    return {
        "gourmet": gourmet,
        "tech": tech,
        "chocolates": chocolates,
        "gadgets": gadgets,
        "truffles": truffles,
        "speakers": speakers,
    }


@pytest_asyncio.fixture
async def sample_product(test_db: AsyncSession, sample_categories: dict) -> Product:
    """A product with a three-image gallery and both roles assigned."""
    images = [f"{STORAGE_BASE}/a.jpg", f"{STORAGE_BASE}/b.jpg", f"{STORAGE_BASE}/c.jpg"]
    product = Product(
        name="Truffle Hamper",
        description="Assorted dark chocolate truffles",
        price=Decimal("1200.00"),
        price_min=Decimal("1200.00"),
        price_max=Decimal("1800.00"),
        has_price_range=True,
        images=images,
        display_image=images[0],
        hover_image=images[1],
        main_category=sample_categories["gourmet"].id,
        primary_category=sample_categories["chocolates"].id,
        secondary_category=sample_categories["truffles"].id,
        moq=10,
        delivery="5-7 days",
    )
    test_db.add(product)
    await test_db.commit()
    await test_db.refresh(product)
    return product


@pytest_asyncio.fixture
async def catalog_products(test_db: AsyncSession, sample_categories: dict) -> list:
    """Five products with distinct names, prices and creation times."""
    now = datetime.now(timezone.utc)
    specs = [
        ("Almond Box", "Roasted almonds", "500", "gourmet"),
        ("Bluetooth Speaker", "Portable speaker", "2500", "tech"),
        ("Cocoa Truffles", "Dark chocolate", "900", "gourmet"),
        ("Desk Organizer", "Bamboo organizer", "1500", "tech"),
        ("Earl Grey Tin", "Loose leaf tea with chocolate notes", "700", "gourmet"),
    ]
    products = []
    for i, (name, description, price, main) in enumerate(specs):
        products.append(Product(
            name=name,
            description=description,
            price=Decimal(price),
            price_min=Decimal(price),
            price_max=Decimal(price),
            main_category=sample_categories[main].id,
            created_at=now - timedelta(hours=len(specs) - i),
        ))
    test_db.add_all(products)
    await test_db.commit()
    return products


@pytest_asyncio.fixture
async def sample_quotes(test_db: AsyncSession, catalog_products: list) -> list:
    """Quotes covering explicit, null and empty statuses."""
    now = datetime.now(timezone.utc)
    quotes = [
        QuoteRequest(
            name="Asha", email="asha@example.com", company="Acme",
            shortlisted_products=[str(catalog_products[0].id), {"id": str(catalog_products[2].id), "quantity": 25}],
            status="pending", created_at=now - timedelta(days=3),
        ),
        QuoteRequest(
            name="Ben", email="ben@example.com", company="Globex",
            shortlisted_products=[], created_at=now - timedelta(days=2),
        ),
        QuoteRequest(
            name="Chen", email="chen@example.com", company="Initech",
            shortlisted_products=[], status="", created_at=now - timedelta(days=1),
        ),
        QuoteRequest(
            name="Dana", email="dana@example.com", company="Umbrella",
            shortlisted_products=[], status="approved", created_at=now,
        ),
    ]
    test_db.add_all(quotes)
    await test_db.commit()

    # Legacy rows without a status
    await test_db.execute(
        update(QuoteRequest).where(QuoteRequest.id == quotes[1].id).values(status=None)
    )
    await test_db.commit()
    await test_db.refresh(quotes[1])
    return quotes


@pytest.fixture
def mock_storage() -> AsyncMock:
    """StorageService double: uploads return predictable public URLs."""
    storage = AsyncMock(spec=StorageService)
    storage.upload_many.side_effect = lambda files, folder="products": [
        f"{STORAGE_BASE}/{f.filename}" for f in files
    ]
    storage.delete.return_value = True
    return storage
