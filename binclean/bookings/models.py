from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from binclean.utils.validators import validate_au_phone, validate_required_text

# Corps JSON en camelCase (formulaire front), attributs Python en snake_case
_CAMEL = ConfigDict(populate_by_name=True)


class AddressComponents(BaseModel):
    model_config = _CAMEL

    street_number: Optional[str] = Field(None, alias="streetNumber")
    route: Optional[str] = None
    locality: Optional[str] = None
    administrative_area: Optional[str] = Field(None, alias="administrativeArea")
    postal_code: Optional[str] = Field(None, alias="postalCode")
    country: Optional[str] = None


class AddressDetails(BaseModel):
    """Adresse normalisée fournie par l'autocomplétion (persistée telle quelle)."""

    model_config = _CAMEL

    place_id: str = Field(..., alias="placeId")
    formatted_address: Optional[str] = Field(None, alias="formattedAddress")
    address_components: AddressComponents = Field(default_factory=AddressComponents, alias="addressComponents")
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class _CustomerFields(BaseModel):
    model_config = _CAMEL

    name: str
    email: EmailStr
    phone: str
    address: str
    notes: Optional[str] = None
    discount_code: Optional[str] = Field(None, alias="discountCode")

    @field_validator("name", "address")
    def required_text(cls, v: str) -> str:
        return validate_required_text(v)

    @field_validator("phone")
    def au_phone(cls, v: str) -> str:
        return validate_au_phone(v)

    @field_validator("discount_code")
    def blank_code_is_none(cls, v: Optional[str]) -> Optional[str]:
        return (v or "").strip() or None


class OneTimeCheckoutRequest(_CustomerFields):
    bins: Literal["1", "2", "3"]
    date: datetime
    address_details: Optional[AddressDetails] = Field(None, alias="addressDetails")

    @field_validator("bins", mode="before")
    def bins_as_text(cls, v):
        return str(v) if isinstance(v, int) else v


class SubscriptionCheckoutRequest(_CustomerFields):
    plan: Literal["weekly", "fortnightly"]
    date: Optional[datetime] = None


class DiscountRequest(BaseModel):
    model_config = _CAMEL

    discount_code: Optional[str] = Field(None, alias="discountCode")
    bins: Optional[Literal["1", "2", "3"]] = None
    plan: Optional[Literal["weekly", "fortnightly"]] = None

    @field_validator("bins", mode="before")
    def bins_as_text(cls, v):
        return str(v) if isinstance(v, int) else v

    @property
    def selection(self) -> Optional[str]:
        return self.bins or self.plan
