"""Reservation, guest, staff and customer data models.

Field names are snake_case in Python and camelCase on the wire, matching
the JSON the booking API sends and accepts.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from reservation_engine.utils import BOOKING_TIME_FORMAT, DATE_FORMAT, parse_date

ANY_PROFESSIONAL_ID = 0


class ApiModel(BaseModel):
    """Base model speaking the booking API's camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ReservationStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class Staff(ApiModel):
    """Staff member as returned by the staff directory."""

    id: Optional[int] = None
    display_name: str = Field(default="", alias="nickname")
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    active: bool = Field(default=True, alias="isActive")

    @property
    def is_any_professional(self) -> bool:
        return self.id == ANY_PROFESSIONAL_ID


ANY_PROFESSIONAL = Staff(
    id=ANY_PROFESSIONAL_ID,
    display_name="Any",
    first_name="Any",
    last_name="Professional",
)


class ServiceItem(ApiModel):
    """Bookable service from the store's catalog."""

    id: int
    name: str = Field(default="", alias="serviceName")
    price: float = Field(default=0.0, alias="servicePrice")
    estimated_time: int = 0


class GuestService(ApiModel):
    service_item: ServiceItem
    assigned_staff: Optional[Staff] = Field(default=None, alias="staff")


class Guest(ApiModel):
    """One person in a reservation and the services they booked."""

    id: Optional[int] = None
    display_name: str = Field(default="", alias="name")
    services: list[GuestService] = Field(default_factory=list, alias="guestServices")
    total_price: float = 0.0
    total_estimated_time: int = 0

    @field_validator("services", mode="before")
    @classmethod
    def _null_services(cls, value):
        # The API sends null for a guest with no services yet.
        return value if value is not None else []

    def with_totals(self) -> "Guest":
        """Return a copy whose totals are summed from its services."""
        return self.model_copy(
            update={
                "total_price": sum(s.service_item.price for s in self.services),
                "total_estimated_time": sum(
                    s.service_item.estimated_time for s in self.services
                ),
            }
        )


class Customer(ApiModel):
    id: Optional[int] = None
    first_name: str = ""
    last_name: str = ""
    phone: str = ""


class Reservation(ApiModel):
    """Complete reservation record exchanged with the persistence API."""

    id: Optional[int] = None
    customer: Customer = Field(default_factory=Customer)
    booking_date: date = Field(alias="date")
    booking_time: datetime
    status: ReservationStatus = ReservationStatus.PENDING
    note: str = ""
    guests: list[Guest] = Field(default_factory=list)
    walk_in_booking: bool = False

    @field_validator("booking_date", mode="before")
    @classmethod
    def _parse_date(cls, value):
        if isinstance(value, str):
            return parse_date(value)
        return value

    @field_validator("booking_time", mode="before")
    @classmethod
    def _parse_booking_time(cls, value):
        if isinstance(value, str):
            return datetime.strptime(value.strip(), BOOKING_TIME_FORMAT)
        return value

    @field_serializer("booking_date")
    def _serialize_date(self, value: date) -> str:
        return value.strftime(DATE_FORMAT)

    @field_serializer("booking_time")
    def _serialize_booking_time(self, value: datetime) -> str:
        return value.strftime(BOOKING_TIME_FORMAT)

    @property
    def is_group_booking(self) -> bool:
        return len(self.guests) > 1
