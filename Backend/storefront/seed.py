from decimal import Decimal

from sqlalchemy import select

from .core.config import get_settings
from .models import Category, MenuItem, Shop


settings = get_settings()

DEMO_MENU = {
    "Coffee": [
        ("Espresso", "2.50", None, True),
        ("Cappuccino", "3.80", "3.20", True),
        ("Flat White", "3.60", None, False),
    ],
    "Tea": [
        ("Masala Chai", "3.00", None, False),
        ("Green Tea", "2.80", None, False),
    ],
    "Snacks": [
        ("Tea Cake", "2.20", "1.90", False),
        ("Butter Croissant", "2.90", None, False),
    ],
}


async def seed_initial_data(session):
    result = await session.execute(select(Shop).where(Shop.slug == settings.default_shop_slug))
    shop = result.scalar_one_or_none()

    if not shop:
        shop = Shop(slug=settings.default_shop_slug, name=settings.default_shop_name)
        session.add(shop)
        await session.flush()

    # Seed menu if missing
    result = await session.execute(select(MenuItem.id).where(MenuItem.shop_id == shop.id).limit(1))
    if result.first() is None:
        for category_name, items in DEMO_MENU.items():
            category = Category(shop_id=shop.id, name=category_name)
            session.add(category)
            await session.flush()
            session.add_all(
                [
                    MenuItem(
                        shop_id=shop.id,
                        category_id=category.id,
                        category=category_name,
                        name=name,
                        price=Decimal(price),
                        offer_price=Decimal(offer) if offer else None,
                        is_featured=featured,
                    )
                    for name, price, offer, featured in items
                ]
            )

    await session.commit()
