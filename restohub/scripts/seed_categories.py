"""
Seed the shared category tree.

    python -m restohub.scripts.seed_categories [--create-tables] [--no-subcategories]

Safe to run repeatedly: categories are matched by name and existing ones are
left untouched. Subcategories are named "<Parent> - <Child>".
"""
import argparse

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from restohub.db.base import Base
from restohub.db.session import SessionLocal, engine
from restohub.models import Category
from restohub.services.category_service import slugify

MAIN_CATEGORIES = [
    {"name": "Appetizers & Starters", "description": "Small dishes served before the main course", "icon": "🥗", "color": "#FF6B6B"},
    {"name": "Soups & Salads", "description": "Fresh salads and warm soups for a light meal", "icon": "🥣", "color": "#4ECDC4"},
    {"name": "Pizza", "description": "Traditional and gourmet pizzas with various toppings", "icon": "🍕", "color": "#FFE66D"},
    {"name": "Pasta & Italian", "description": "Classic Italian pasta dishes and specialties", "icon": "🍝", "color": "#FF8B94"},
    {"name": "Burgers & Sandwiches", "description": "Juicy burgers and fresh sandwiches", "icon": "🍔", "color": "#A8E6CF"},
    {"name": "Main Courses", "description": "Hearty main dishes and entrees", "icon": "🍖", "color": "#B4A7D6"},
    {"name": "Seafood", "description": "Fresh fish and seafood specialties", "icon": "🐟", "color": "#87CEEB"},
    {"name": "Vegetarian & Vegan", "description": "Plant-based dishes for vegetarian and vegan diets", "icon": "🥬", "color": "#90EE90"},
    {"name": "Asian Cuisine", "description": "Authentic Asian dishes and flavors", "icon": "🥢", "color": "#F4A460"},
    {"name": "Mexican & Latin", "description": "Spicy and flavorful Mexican and Latin American dishes", "icon": "🌮", "color": "#FF7F50"},
    {"name": "Desserts", "description": "Sweet treats and desserts to end your meal", "icon": "🍰", "color": "#FFB6C1"},
    {"name": "Beverages", "description": "Hot and cold drinks, juices, and specialty beverages", "icon": "🥤", "color": "#DDA0DD"},
    {"name": "Coffee & Tea", "description": "Premium coffee, tea, and hot beverages", "icon": "☕", "color": "#D2691E"},
    {"name": "Alcoholic Beverages", "description": "Wine, beer, cocktails, and spirits", "icon": "🍷", "color": "#DC143C"},
    {"name": "Kids Menu", "description": "Child-friendly meals and smaller portions", "icon": "🧒", "color": "#FFE4B5"},
]

# Parent name -> [(child name, color)], listed in display order
SUBCATEGORIES = {
    "Pizza": [
        ("Margherita & Classic", "#FFE66D"),
        ("Meat Lovers", "#FF6347"),
        ("Vegetarian Pizza", "#98FB98"),
        ("Gourmet & Specialty", "#DDA0DD"),
    ],
    "Pasta & Italian": [
        ("Spaghetti & Long Pasta", "#FF8B94"),
        ("Penne & Short Pasta", "#F0E68C"),
        ("Lasagna & Baked Pasta", "#CD853F"),
        ("Ravioli & Stuffed Pasta", "#DEB887"),
    ],
    "Asian Cuisine": [
        ("Chinese", "#FF6347"),
        ("Japanese & Sushi", "#FFB6C1"),
        ("Thai", "#98FB98"),
        ("Indian", "#F4A460"),
        ("Vietnamese", "#87CEEB"),
    ],
    "Main Courses": [
        ("Grilled & BBQ", "#CD853F"),
        ("Steaks & Beef", "#A0522D"),
        ("Chicken & Poultry", "#DEB887"),
        ("Pork & Lamb", "#D2691E"),
    ],
    "Desserts": [
        ("Cakes & Pastries", "#FFB6C1"),
        ("Ice Cream & Gelato", "#E6E6FA"),
        ("Chocolate Desserts", "#DEB887"),
        ("Fruit Desserts", "#98FB98"),
    ],
    "Beverages": [
        ("Soft Drinks", "#87CEEB"),
        ("Juices & Smoothies", "#FFE4B5"),
        ("Energy & Sports Drinks", "#F0E68C"),
        ("Water & Sparkling", "#E0FFFF"),
    ],
    "Appetizers & Starters": [
        ("Dips & Spreads", "#DDA0DD"),
        ("Fried Appetizers", "#F4A460"),
        ("Cold Appetizers", "#87CEEB"),
        ("Cheese & Charcuterie", "#FFE4B5"),
    ],
}


def _get_or_create(db: Session, **fields) -> tuple:
    existing = db.execute(select(Category).where(Category.name == fields["name"])).scalar_one_or_none()
    if existing is not None:
        return existing, False
    category = Category(slug=slugify(fields["name"]), **fields)
    db.add(category)
    db.flush()
    return category, True


def seed_categories(db: Session, include_subcategories: bool = True) -> dict:
    """Create any missing default categories. Returns counts of what was created."""
    created_main = created_sub = 0
    parents = {}

    for position, data in enumerate(MAIN_CATEGORIES, start=1):
        category, created = _get_or_create(db, sort_order=position, is_active=True, **data)
        parents[category.name] = category
        created_main += created

    if include_subcategories:
        for parent_name, children in SUBCATEGORIES.items():
            parent = parents[parent_name]
            for position, (child_name, color) in enumerate(children, start=1):
                _, created = _get_or_create(
                    db,
                    name=f"{parent_name} - {child_name}",
                    description=f"{child_name} under {parent_name} category",
                    icon=parent.icon,
                    color=color,
                    sort_order=position,
                    is_active=True,
                    parent=parent,
                )
                created_sub += created

    db.commit()
    total = db.execute(select(func.count(Category.id))).scalar_one()
    return {"main_created": created_main, "subcategories_created": created_sub, "total": total}


def main():
    parser = argparse.ArgumentParser(description="Seed the default category tree.")
    parser.add_argument("--create-tables", action="store_true", help="create missing tables first")
    parser.add_argument("--no-subcategories", action="store_true", help="only seed top-level categories")
    args = parser.parse_args()

    if args.create_tables:
        print("Creating tables...")
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        print("Seeding categories...")
        result = seed_categories(db, include_subcategories=not args.no_subcategories)
    finally:
        db.close()

    print(f"Created {result['main_created']} main categories and {result['subcategories_created']} subcategories")
    print(f"Total categories in database: {result['total']}")


if __name__ == "__main__":
    main()
