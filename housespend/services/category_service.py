"""Category reference data."""

from sqlalchemy.orm import Session

from housespend.models.category import Category

FALLBACK_CATEGORY = "Otros"

# (name, description, color)
DEFAULT_CATEGORIES = [
    ("Alimentación", "Productos alimenticios y bebidas", "#10B981"),
    ("Limpieza", "Productos de limpieza del hogar", "#3B82F6"),
    ("Cuidado Personal", "Productos de higiene y cuidado personal", "#8B5CF6"),
    ("Bebidas", "Bebidas alcohólicas y no alcohólicas", "#F59E0B"),
    ("Frutas y Verduras", "Frutas y verduras frescas", "#22C55E"),
    ("Carnes y Pescados", "Carnes, pescados y mariscos", "#EF4444"),
    ("Lácteos", "Leche, queso, yogur y derivados", "#FBBF24"),
    ("Panadería", "Pan, bollería y repostería", "#F97316"),
    ("Congelados", "Productos congelados", "#06B6D4"),
    (FALLBACK_CATEGORY, "Otros productos", "#6B7280"),
]


def seed_categories(db: Session) -> int:
    """Insert any missing default categories. Returns the number added."""
    existing = {name for (name,) in db.query(Category.name).all()}
    added = 0
    for name, description, color in DEFAULT_CATEGORIES:
        if name in existing:
            continue
        db.add(Category(name=name, description=description, color=color))
        added += 1
    if added:
        db.commit()
    return added


def get_categories_by_name(db: Session) -> dict[str, Category]:
    """Map exact category name to category."""
    return {category.name: category for category in db.query(Category).all()}
