"""
Database Schemas for the Mess Directory

Each top-level Pydantic model represents a MongoDB collection (collection name is the lowercase of the class name).

This app manages:
- Messes (profile, contact info, cuisine)
- Subscription plans (embedded in a mess)
- Menu timeline (dated menus of dishes, embedded in a mess)
"""

import datetime as dt
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


def as_calendar_day(value) -> dt.date:
    """Reduce a date, datetime or ISO string to its calendar day.

    Timezone-aware datetimes are converted to UTC before the time of day is
    dropped, since menu days are stored at UTC midnight.
    """
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Date is required")
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            value = dt.datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"Invalid date: {value!r}") from None
    if isinstance(value, dt.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(dt.timezone.utc)
        return value.date()
    if isinstance(value, dt.date):
        return value
    if value is None:
        raise ValueError("Date is required")
    raise ValueError(f"Invalid date: {value!r}")


class DishKind(str, Enum):
    VEG = "veg"
    NON_VEG = "non-veg"


class MessType(str, Enum):
    VEG = "veg"
    NON_VEG = "non-veg"
    BOTH = "both"


class Dish(BaseModel):
    """
    One dish on a day's menu
    Embedded in DayMenu.items (not a collection)
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, use_enum_values=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1, description="Dish name")
    description: Optional[str] = Field(None, description="Short description")
    kind: DishKind = Field(DishKind.VEG, alias="type", validate_default=True, description="veg | non-veg")
    image: Optional[str] = Field(None, description="Image URL")


class DayMenu(BaseModel):
    """
    Dishes offered on one calendar date
    Embedded in Mess.menu (not a collection)
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: dt.date = Field(..., description="Calendar day of the menu")
    dishes: Tuple[Dish, ...] = Field(..., alias="items", min_length=1, description="Dishes in display order")

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, v):
        return as_calendar_day(v)


class SubscriptionPlan(BaseModel):
    """
    Subscription plan offered by a mess
    Embedded in Mess.plans (not a collection)
    """
    name: str = Field(..., min_length=1, description="Plan name")
    description: Optional[str] = Field(None, description="What the plan includes")
    price: float = Field(..., ge=0, description="Plan price")
    duration: int = Field(..., gt=0, description="Duration in days")


class Mess(BaseModel):
    """
    Meal-service vendors
    Collection name: "mess"
    """
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    owner_id: Optional[str] = Field(None, alias="ownerId", description="Owning user id")
    name: str = Field(..., min_length=1, description="Mess name")
    type: MessType = Field(MessType.BOTH, validate_default=True, description="veg | non-veg | both")
    cuisine: List[str] = Field(default_factory=list, description="Cuisines served")
    location: Optional[str] = Field(None, description="Area or campus")
    address: Optional[str] = Field(None, description="Street address")
    contact_number: Optional[str] = Field(None, alias="contactNumber", description="Phone number")
    image: Optional[str] = Field(None, description="Cover image URL")
    description: Optional[str] = Field(None, description="Short description")
    plans: List[SubscriptionPlan] = Field(default_factory=list, description="Subscription plans")
    menu: List[DayMenu] = Field(default_factory=list, description="Menu timeline, newest first")


# Request payloads

class MessCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    name: str = Field(..., min_length=1)
    owner_id: Optional[str] = Field(None, alias="ownerId")
    type: MessType = Field(MessType.BOTH, validate_default=True)
    cuisine: List[str] = Field(default_factory=list)
    location: str = "To be updated"
    address: str = "To be updated"
    contact_number: str = Field("", alias="contactNumber")
    image: Optional[str] = None
    description: Optional[str] = None
    plans: List[SubscriptionPlan] = Field(default_factory=list)


class MessUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    name: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    type: Optional[MessType] = None
    cuisine: Optional[List[str]] = None
    contact_number: Optional[str] = Field(None, alias="contactNumber")
    image: Optional[str] = None
    description: Optional[str] = None
    plans: Optional[List[SubscriptionPlan]] = None


class MenuDayRequest(BaseModel):
    """Dishes to add for one date. Rows with a blank name are dropped by the timeline."""
    date: Optional[str] = None
    items: List[dict] = Field(default_factory=list)
