"""
Test configuration and fixtures.
"""
import os
from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set test database URL before importing app
os.environ["DATABASE_URL"] = "sqlite://"

from restohub.main import app
from restohub.db.base import Base
from restohub.db.session import get_db
from restohub.models import Category, Item, Menu, MenuItem, Restaurant, RestaurantCategory

OWNER_ID = "owner-1"
OTHER_OWNER_ID = "owner-2"
CUSTOMER_ID = "customer-1"

# Open every day from 00:00 to 23:59
ALWAYS_OPEN = {str(day): {"open": 0, "close": 2359, "is_closed": False} for day in range(7)}


# SQLite in-memory database shared by every connection of a test
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema and session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create test client with database session override."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def owner_headers() -> dict:
    return {"X-User-Id": OWNER_ID}


@pytest.fixture
def other_owner_headers() -> dict:
    return {"X-User-Id": OTHER_OWNER_ID}


@pytest.fixture
def customer_headers() -> dict:
    return {"X-User-Id": CUSTOMER_ID}


@pytest.fixture
def make_restaurant(db: Session):
    """Factory: persist a restaurant, open around the clock unless overridden."""
    def _make(owner_id: str = OWNER_ID, name: str = "Chez Test", **fields) -> Restaurant:
        data = {
            "address": "1 rue de la Paix",
            "city": "Paris",
            "postal_code": "75001",
            "cuisine_type": "French",
            "is_open": True,
            "opening_hours": ALWAYS_OPEN,
        }
        data.update(fields)
        restaurant = Restaurant(owner_id=owner_id, name=name, **data)
        db.add(restaurant)
        db.commit()
        db.refresh(restaurant)
        return restaurant
    return _make


@pytest.fixture
def restaurant(make_restaurant) -> Restaurant:
    return make_restaurant()


@pytest.fixture
def other_restaurant(make_restaurant) -> Restaurant:
    return make_restaurant(owner_id=OTHER_OWNER_ID, name="Other Place", city="Lyon")


@pytest.fixture
def make_item(db: Session):
    """Factory: persist an item in the given restaurant."""
    def _make(restaurant: Restaurant, name: str = "Margherita", price: str = "10.00", **fields) -> Item:
        item = Item(restaurant_id=restaurant.id, name=name, price=Decimal(price), **fields)
        db.add(item)
        db.commit()
        db.refresh(item)
        return item
    return _make


@pytest.fixture
def make_category(db: Session):
    """Factory: persist a category; the slug is derived from the name."""
    def _make(name: str = "Pizza", sort_order: int = 0, **fields) -> Category:
        slug = name.lower().replace(" ", "-")
        category = Category(name=name, slug=slug, sort_order=sort_order, **fields)
        db.add(category)
        db.commit()
        db.refresh(category)
        return category
    return _make


@pytest.fixture
def make_menu(db: Session):
    """Factory: persist a menu with one line per given item."""
    def _make(restaurant: Restaurant, items, name: str = "Lunch Deal", price: str = "15.00", **fields) -> Menu:
        menu = Menu(restaurant_id=restaurant.id, name=name, price=Decimal(price), **fields)
        for item in items:
            menu.menu_items.append(MenuItem(item=item, quantity=1))
        db.add(menu)
        db.commit()
        db.refresh(menu)
        return menu
    return _make


@pytest.fixture
def link_category(db: Session):
    """Factory: attach a category to a restaurant directly."""
    def _link(restaurant: Restaurant, category: Category, is_active: bool = True) -> RestaurantCategory:
        link = RestaurantCategory(restaurant=restaurant, category=category, is_active=is_active, added_by=OWNER_ID)
        db.add(link)
        db.commit()
        return link
    return _link
