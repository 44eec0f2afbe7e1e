from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum


class UserCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=100)


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    stripe_id: str

    class Config:
        from_attributes = True


class SubscriptionCreateRequest(BaseModel):
    user_id: int
    price_id: str = Field(..., min_length=1, max_length=50)


class SubscriptionResponse(BaseModel):
    id: int
    user_id: int
    stripe_sub_id: str
    plan_id: str
    status: str
    start_date: datetime
    cancel_date: Optional[datetime] = None
    next_billing_day: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserSubscriptionsResponse(BaseModel):
    user_id: int
    subscriptions: List[SubscriptionResponse]


class RecurringInterval(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class PriceCreateRequest(BaseModel):
    product_name: str = Field("Starter Subscription", min_length=1)
    description: Optional[str] = "$12/Month subscription"
    unit_amount: int = Field(1200, ge=0)
    currency: str = Field("usd", min_length=3, max_length=3)
    interval: RecurringInterval = RecurringInterval.MONTH


class PriceResponse(BaseModel):
    product_id: str
    price_id: str
    currency: str
    unit_amount: int
    interval: Optional[str] = None


class DriftResponse(BaseModel):
    subscription_id: int
    stripe_sub_id: str
    local_status: str
    remote_status: Optional[str] = None
    error: Optional[str] = None
    applied: bool = False

    class Config:
        from_attributes = True
