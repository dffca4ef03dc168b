import uuid

from sqlalchemy import (
    Column, String, Integer, Float, Text, DateTime, Numeric,
    ForeignKey, JSON, Boolean, Uuid
)
from sqlalchemy.orm import DeclarativeBase
import enum

from terra.services.clock import utcnow


class Base(DeclarativeBase):
    pass


class UserRole(str, enum.Enum):
    BUYER = "BUYER"
    SELLER = "SELLER"
    AGENT = "AGENT"
    ADMIN = "ADMIN"


class PropertyCategory(str, enum.Enum):
    LAND = "LAND"
    HOUSE = "HOUSE"
    COMMERCIAL = "COMMERCIAL"


class TransactionType(str, enum.Enum):
    SALE = "SALE"
    LEASE = "LEASE"


class LeadStatus(str, enum.Enum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    CLOSED = "CLOSED"
    LOST = "LOST"


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(50), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.BUYER.value)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)


class Property(Base):
    __tablename__ = "properties"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=False, default="")
    price_kes = Column(Numeric(15, 2), nullable=False)
    price_usd = Column(Numeric(15, 2), nullable=True)
    category = Column(String(20), nullable=False, default=PropertyCategory.LAND.value)
    transaction_type = Column(String(20), nullable=False, default=TransactionType.SALE.value)
    location = Column(String(255), nullable=False, default="Unknown")
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Integer, nullable=True)
    size_acres = Column(Float, nullable=True)
    images = Column(JSON, nullable=False, default=list)
    amenities = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    duration_days = Column(Integer, nullable=False, default=30)
    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class PropertyView(Base):
    """Append-only view event; rows are never updated."""

    __tablename__ = "property_views"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    property_id = Column(Uuid, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    visitor_id = Column(String(100), nullable=True, index=True)
    user_id = Column(Uuid, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)


class Lead(Base):
    __tablename__ = "leads"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    message = Column(Text, nullable=True)
    property_id = Column(Uuid, ForeignKey("properties.id", ondelete="SET NULL"), nullable=True)
    seller_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)
    status = Column(String(20), nullable=False, default=LeadStatus.NEW.value)
    created_at = Column(DateTime, default=utcnow, index=True)
