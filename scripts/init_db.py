#!/usr/bin/env python
"""Initialize database tables and seed demo users and listings."""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
import logging
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import select, func

from terra.db.models import User, UserRole, Property, PropertyCategory, TransactionType
from terra.db.session import async_engine, AsyncSessionLocal, create_tables
from terra.services.clock import utcnow

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_USERS = [
    {"name": "Admin User", "email": "admin@terra.example", "role": UserRole.ADMIN},
    {"name": "Sarah Seller", "email": "seller@terra.example", "role": UserRole.SELLER},
    {"name": "Alex Agent", "email": "agent@terra.example", "role": UserRole.AGENT},
    {"name": "Ben Buyer", "email": "buyer@terra.example", "role": UserRole.BUYER},
]

DEMO_PROPERTIES = [
    {
        "title": "5 Acre Plot in Kitengela",
        "price_kes": Decimal("4500000"),
        "price_usd": Decimal("35000"),
        "category": PropertyCategory.LAND,
        "transaction_type": TransactionType.SALE,
        "location": "Kitengela",
        "size_acres": 5.0,
        "images": ["/uploads/kitengela-plot.jpg"],
        "amenities": ["Water", "Electricity"],
        "duration_days": 30,
    },
    {
        "title": "4 Bedroom Maisonette, Karen",
        "price_kes": Decimal("350000"),
        "category": PropertyCategory.HOUSE,
        "transaction_type": TransactionType.LEASE,
        "location": "Karen, Nairobi",
        "bedrooms": 4,
        "bathrooms": 3,
        "images": ["/uploads/karen-front.jpg", "/uploads/karen-garden.jpg"],
        "amenities": ["Garden", "Parking", "Security"],
        "duration_days": 60,
    },
    {
        "title": "Retail Space on Moi Avenue",
        "price_kes": Decimal("180000"),
        "category": PropertyCategory.COMMERCIAL,
        "transaction_type": TransactionType.LEASE,
        "location": "Nairobi CBD",
        "images": [],
        "amenities": ["Parking"],
        "duration_days": 14,
    },
]


async def init_database():
    """Create all tables."""
    logger.info("Creating database tables...")
    await create_tables()
    logger.info("Tables created successfully")


async def check_data_exists(session) -> bool:
    """Check if users table already has data."""
    count = (await session.execute(select(func.count(User.id)))).scalar_one()
    return count > 0


async def seed_demo_data():
    """Insert demo users and listings owned by the demo seller."""
    async with AsyncSessionLocal() as session:
        if await check_data_exists(session):
            logger.info("Data already exists in database, skipping seed")
            return

        users = {}
        for data in DEMO_USERS:
            user = User(name=data["name"], email=data["email"], role=data["role"].value)
            session.add(user)
            users[data["role"]] = user
        await session.flush()

        now = utcnow()
        seller = users[UserRole.SELLER]
        for data in DEMO_PROPERTIES:
            fields = dict(data)
            fields["category"] = fields["category"].value
            fields["transaction_type"] = fields["transaction_type"].value
            session.add(Property(
                owner_id=seller.id,
                expires_at=now + timedelta(days=fields["duration_days"]),
                **fields
            ))
        await session.commit()

    logger.info(f"Inserted {len(DEMO_USERS)} users and {len(DEMO_PROPERTIES)} properties")
    for role, user in users.items():
        logger.info(f"  {role.value}: {user.email} (X-User-Id: {user.id})")


async def main():
    await init_database()
    await seed_demo_data()
    await async_engine.dispose()
    logger.info("Database initialization complete")


if __name__ == "__main__":
    asyncio.run(main())
