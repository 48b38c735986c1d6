"""
Default spending categories.

Categories are seed data: the engine reads them through the store and
never mutates them. These are the ones a fresh ledger starts with.
"""

from expense_ledger.models.ledger import Category


DEFAULT_CATEGORIES: list[dict] = [
    {"name": "Food & Dining", "color": "#ef4444", "icon_name": "UtensilsCrossed", "emoji": "🍽️", "display_order": 1},
    {"name": "Transportation", "color": "#3b82f6", "icon_name": "Car", "emoji": "🚗", "display_order": 2},
    {"name": "Shopping", "color": "#8b5cf6", "icon_name": "ShoppingBag", "emoji": "🛍️", "display_order": 3},
    {"name": "Entertainment", "color": "#f59e0b", "icon_name": "Gamepad2", "emoji": "🎮", "display_order": 4},
    {"name": "Bills & Utilities", "color": "#10b981", "icon_name": "Zap", "emoji": "⚡", "display_order": 5},
    {"name": "Healthcare", "color": "#ec4899", "icon_name": "Heart", "emoji": "🏥", "display_order": 6},
    {"name": "Groceries", "color": "#84cc16", "icon_name": "ShoppingCart", "emoji": "🛒", "display_order": 7},
    {"name": "Personal Care", "color": "#06b6d4", "icon_name": "Sparkles", "emoji": "💅", "display_order": 8},
    {"name": "Other", "color": "#6b7280", "icon_name": "MoreHorizontal", "emoji": "📦", "display_order": 9},
]


def category_slug(name: str) -> str:
    """Stable id derived from a category name ("Food & Dining" -> "food-dining")."""
    words = "".join(c if c.isalnum() else " " for c in name.lower()).split()
    return "-".join(words)


def seed_categories() -> list[Category]:
    """Build the default categories, ordered by display_order."""
    categories = [
        Category(id=category_slug(fields["name"]), **fields)
        for fields in DEFAULT_CATEGORIES
    ]
    return sorted(categories, key=lambda c: c.display_order)
