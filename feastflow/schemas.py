"""
Pydantic Schemas for Request/Response Validation

Request bodies use the storefront's camelCase keys. Required fields are
declared optional here so that a missing field reaches the service layer
and is reported as a 400 ``ValidationError`` in the standard envelope.

Version: 1.0.0
"""

from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from feastflow.models import UserRole


class CamelModel(BaseModel):
    """Accepts both the camelCase alias and the field name."""
    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class RegisterRequest(CamelModel):
    email: Optional[str] = Field(None, examples=["jane@example.com"])
    password: Optional[str] = Field(None, examples=["S3cret!pass"])
    first_name: Optional[str] = Field(None, alias="firstName", examples=["Jane"])
    last_name: Optional[str] = Field(None, alias="lastName", examples=["Doe"])
    phone_number: Optional[str] = Field(None, alias="phoneNumber", max_length=20)
    role: Optional[str] = Field(None, examples=["customer"])


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class AddCartItemRequest(CamelModel):
    """Snapshot of a catalog entry supplied by the storefront."""
    menu_item_id: Optional[str] = Field(None, alias="menuItemId", examples=["m1"])
    menu_item_name: Optional[str] = Field(None, alias="menuItemName", examples=["Margherita"])
    menu_item_price: Optional[float] = Field(None, alias="menuItemPrice", examples=[12.5])
    menu_item_description: Optional[str] = Field(None, alias="menuItemDescription")
    menu_item_category: Optional[str] = Field(None, alias="menuItemCategory")
    restaurant_id: Optional[str] = Field(None, alias="restaurantId", examples=["r1"])
    restaurant_name: Optional[str] = Field(None, alias="restaurantName", examples=["Luigi's"])
    quantity: int = 1

    @field_validator("menu_item_id", "restaurant_id", mode="before")
    @classmethod
    def coerce_identifier(cls, v: Union[str, int, None]) -> Optional[str]:
        # Catalog ids may arrive as numbers
        if v is None or isinstance(v, str):
            return v
        return str(v)


class UpdateCartItemRequest(CamelModel):
    quantity: Optional[int] = None


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class UserPublic(CamelModel):
    """Public view of an account."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: str
    email: str
    first_name: str = Field(serialization_alias="firstName")
    last_name: str = Field(serialization_alias="lastName")
    role: UserRole
    phone_number: Optional[str] = Field(None, serialization_alias="phoneNumber")


class UserProfile(UserPublic):
    created_at: datetime = Field(serialization_alias="createdAt")


class CartItemResponse(BaseModel):
    id: str
    cart_id: str
    menu_item_id: str
    menu_item_name: str
    menu_item_price: float
    menu_item_description: Optional[str]
    menu_item_category: Optional[str]
    restaurant_id: str
    restaurant_name: str
    quantity: int
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class CartResponse(BaseModel):
    id: str
    user_id: str
    restaurant_id: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class CartData(BaseModel):
    cart: CartResponse
    items: List[CartItemResponse]


class Envelope(BaseModel):
    """Standard response wrapper."""
    success: bool = True
    message: Optional[str] = None


class AuthResponse(Envelope):
    token: str
    user: UserPublic


class ProfileResponse(Envelope):
    user: UserProfile


class CartEnvelope(Envelope):
    data: CartData


class CartItemEnvelope(Envelope):
    data: Optional[CartItemResponse] = None


class DataEnvelope(Envelope):
    data: Any


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    message: str
