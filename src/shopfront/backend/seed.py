"""Sample catalog inserted by ``shopfront init``"""
import logging
from decimal import Decimal

from sqlmodel import Session, select

from .model import Category, Product

logger = logging.getLogger(__name__)

SAMPLE_CATEGORIES = [
    {"name": "Electronics", "description": "Phones, laptops and accessories"},
    {"name": "Footwear", "description": "Sneakers, boots and shoes"},
    {"name": "Clothing", "description": "Apparel for every season"},
]

# (name, price, description, category name, in stock)
SAMPLE_PRODUCTS = [
    ("iPhone 15", Decimal("999.00"), "Apple smartphone", "Electronics", True),
    ("MacBook Pro", Decimal("1999.00"), "Apple laptop", "Electronics", True),
    ("Nike Air Max", Decimal("120.00"), "Running sneakers", "Footwear", False),
]


def seed_catalog(session: Session) -> int:
    """Insert the sample categories and products if the catalog is empty

    Returns:
        Number of products inserted
    """
    if session.exec(select(Product)).first() is not None:
        logger.info("Catalog already populated, skipping seed")
        return 0

    categories = {}
    for data in SAMPLE_CATEGORIES:
        category = Category(**data)
        session.add(category)
        categories[category.name] = category
    session.flush()

    for name, price, description, category_name, in_stock in SAMPLE_PRODUCTS:
        session.add(Product(
            name=name,
            price=price,
            description=description,
            category_id=categories[category_name].id,
            in_stock=in_stock,
        ))
    session.commit()

    logger.info(f"Seeded {len(SAMPLE_PRODUCTS)} sample products")
    return len(SAMPLE_PRODUCTS)
