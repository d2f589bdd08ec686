"""
SQLAlchemy models for RestoHub.
"""
# Aggregate root
from restohub.models.restaurant import Restaurant

# Catalogue
from restohub.models.category import Category, RestaurantCategory
from restohub.models.item import Item
from restohub.models.menu import Menu, MenuItem

# Feedback & reporting
from restohub.models.review import Review
from restohub.models.statistics import DailyStatistic


__all__ = [
    "Restaurant",
    # Catalogue
    "Category",
    "RestaurantCategory",
    "Item",
    "Menu",
    "MenuItem",
    # Feedback & reporting
    "Review",
    "DailyStatistic",
]
