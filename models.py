from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

ServiceType = Literal["maintenance", "repair", "inspection", "other"]
FuelType = Literal["gasoline", "diesel", "electric", "hybrid"]
ActivityAction = Literal["create", "update", "delete", "view", "login", "logout", "generate_report"]
EntityType = Literal["car", "service", "user", "report", "fuel_entry"]


class UserBase(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    email: EmailStr


class UserCreate(UserBase):
    password: str = Field(min_length=6)


class UserLogin(BaseModel):
    email: EmailStr
    password: str
    otp: Optional[str] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6)


class CarBase(BaseModel):
    year: Optional[int] = None

    @field_validator("year")
    @classmethod
    def year_in_range(cls, value):
        if value is None:
            return value
        if value < 1900:
            raise ValueError("Year must be after 1900")
        if value > datetime.utcnow().year + 1:
            raise ValueError("Year cannot be in the future")
        return value


class CarCreate(CarBase):
    brand: str = Field(min_length=1, max_length=50)
    model: str = Field(min_length=1, max_length=50)
    year: int
    price: float = Field(ge=0)
    color: Optional[str] = Field(default=None, max_length=30)
    mileage: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = Field(default=None, max_length=500)


class CarUpdate(CarBase):
    brand: Optional[str] = Field(default=None, min_length=1, max_length=50)
    model: Optional[str] = Field(default=None, min_length=1, max_length=50)
    price: Optional[float] = Field(default=None, ge=0)
    color: Optional[str] = Field(default=None, max_length=30)
    mileage: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = Field(default=None, max_length=500)


class ServiceCreate(BaseModel):
    car: str
    description: str = Field(min_length=1, max_length=500)
    cost: float = Field(ge=0)
    service_type: ServiceType = "maintenance"
    service_provider: Optional[str] = Field(default=None, max_length=100)
    date: Optional[datetime] = None


class ServiceUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    cost: Optional[float] = Field(default=None, ge=0)
    service_type: Optional[ServiceType] = None
    service_provider: Optional[str] = Field(default=None, max_length=100)
    date: Optional[datetime] = None


class FuelEntryCreate(BaseModel):
    date: datetime
    fuel_amount: float = Field(gt=0)
    cost: float = Field(ge=0)
    mileage: int = Field(ge=0)
    fuel_type: FuelType = "gasoline"
    notes: Optional[str] = Field(default=None, max_length=500)


class ActivityCreate(BaseModel):
    action: ActivityAction
    entity_type: EntityType
    entity_id: Optional[str] = None
    details: dict = Field(default_factory=dict)
    url: Optional[str] = None


class TwoFactorCode(BaseModel):
    code: str = Field(min_length=6, max_length=9)
