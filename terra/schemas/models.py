from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from terra.db.models import PropertyCategory, TransactionType, LeadStatus, UserRole


def _unique(tags: Optional[List[str]]) -> Optional[List[str]]:
    """Drop repeated amenity tags, keeping first-seen order."""
    if tags is None:
        return None
    return list(dict.fromkeys(tags))


# Listings

class PropertyCreate(BaseModel):
    title: Optional[str] = None
    description: str = ""
    price_kes: Optional[Decimal] = None
    price_usd: Optional[Decimal] = None
    category: PropertyCategory = PropertyCategory.LAND
    transaction_type: TransactionType = TransactionType.SALE
    location: str = "Unknown"
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    size_acres: Optional[float] = None
    images: List[str] = []
    amenities: List[str] = []
    duration_days: Optional[int] = Field(default=None, gt=0)

    @field_validator("amenities")
    @classmethod
    def dedupe_amenities(cls, tags):
        return _unique(tags)


class PropertyUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    price_kes: Optional[Decimal] = None
    price_usd: Optional[Decimal] = None
    category: Optional[PropertyCategory] = None
    transaction_type: Optional[TransactionType] = None
    location: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    size_acres: Optional[float] = None
    images: Optional[List[str]] = None
    amenities: Optional[List[str]] = None
    duration_days: Optional[int] = Field(default=None, gt=0)

    @field_validator("amenities")
    @classmethod
    def dedupe_amenities(cls, tags):
        return _unique(tags)


class PropertyResponse(BaseModel):
    id: UUID
    owner_id: UUID
    title: str
    description: str
    price_kes: Decimal
    price_usd: Optional[Decimal] = None
    category: PropertyCategory
    transaction_type: TransactionType
    location: str
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    size_acres: Optional[float] = None
    images: List[str] = []
    amenities: List[str] = []
    is_active: bool
    duration_days: int
    expires_at: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class ExpirationCommand(BaseModel):
    action: Literal["expire", "extend"] = "extend"
    duration_days: Optional[int] = None


class RenewRequest(BaseModel):
    duration_days: Optional[int] = None


class SweepResponse(BaseModel):
    expired: int
    swept_at: datetime


# Views and analytics

class ViewEvent(BaseModel):
    property_id: UUID
    visitor_id: Optional[str] = None
    user_id: Optional[UUID] = None


class TrackResponse(BaseModel):
    success: bool
    view_id: Optional[UUID] = None


class OverviewStats(BaseModel):
    total_views: int
    today_views: int
    week_views: int
    month_views: int
    unique_visitors: int
    total_properties: int


class TopProperty(BaseModel):
    id: UUID
    title: str
    location: str
    cover_image: Optional[str] = None
    images: List[str] = []
    view_count: int


class RecentView(BaseModel):
    id: UUID
    property_id: UUID
    property_title: str
    property_location: str
    visitor_id: Optional[str] = None
    viewed_at: datetime


class DashboardResponse(BaseModel):
    overview: OverviewStats
    top_properties: List[TopProperty]
    recent_views: List[RecentView]


class DailyCount(BaseModel):
    date: date
    count: int


class PropertyTimeSeries(BaseModel):
    property_id: UUID
    total_views: int
    weekly_views: int
    daily_breakdown: List[DailyCount]
    is_active: bool
    expires_at: datetime


# Leads

class LeadCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    message: Optional[str] = None
    property_id: Optional[UUID] = None
    seller_id: Optional[UUID] = None


class LeadResponse(BaseModel):
    id: UUID
    name: str
    email: str
    phone: Optional[str] = None
    message: Optional[str] = None
    property_id: Optional[UUID] = None
    seller_id: Optional[UUID] = None
    status: LeadStatus
    created_at: datetime

    class Config:
        from_attributes = True


class LeadDetail(LeadResponse):
    property_title: Optional[str] = None
    property_location: Optional[str] = None
    seller_name: Optional[str] = None


class LeadStatusUpdate(BaseModel):
    status: str


# Users

class UserResponse(BaseModel):
    id: UUID
    name: str
    email: str
    role: UserRole
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UserSummary(UserResponse):
    property_count: int = 0


class UserStatusUpdate(BaseModel):
    is_active: bool


class MessageResponse(BaseModel):
    message: str
