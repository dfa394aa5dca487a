"""Booking payload shared by direct creation, card-setup confirmation and the checkout webhook."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ServiceSelection(BaseModel):
    """One cart line item, stored on the booking as submitted."""
    model_config = ConfigDict(extra="allow")

    title: str = ""
    category: Optional[str] = None
    subcategory: Optional[str] = None
    duration: str = ""
    price: float = 0
    options: Optional[dict] = None
    quantity: Optional[int] = None

    @property
    def category_key(self) -> str:
        return (self.category or "").strip().lower()


class TechnicianIntent(BaseModel):
    """Requested technician(s). Names are hints; identities are resolved server-side."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: Literal["single", "split", "auto"] = "auto"
    technician: Optional[str] = None
    manicure_technician: Optional[str] = Field(default=None, alias="manicureTechnician")
    pedicure_technician: Optional[str] = Field(default=None, alias="pedicureTechnician")

    @model_validator(mode="before")
    @classmethod
    def _accept_tech_objects(cls, data):
        # Older clients send {"manicureTech": {"id": ..., "name": ...}}; only the name is kept.
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for legacy, key in (("manicureTech", "manicureTechnician"), ("pedicureTech", "pedicureTechnician")):
            if legacy in data and key not in data:
                data[key] = data.pop(legacy)
        for key in ("technician", "manicureTechnician", "pedicureTechnician"):
            value = data.get(key)
            if isinstance(value, dict):
                data[key] = value.get("name")
        if data.get("type") == "single" and not data.get("technician"):
            data["technician"] = data.get("manicureTechnician") or data.get("pedicureTechnician")
        return data

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class BookingPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    customer_first_name: Optional[str] = None
    customer_last_name: Optional[str] = None
    customer_email: Optional[str] = None
    appointment_date: Optional[str] = None
    appointment_time: Optional[str] = None

    services: list[ServiceSelection] = Field(default_factory=list)
    technicians: Optional[TechnicianIntent] = None

    total_price: Optional[float] = None
    total_duration: Optional[int] = None

    appointment_status: Optional[str] = None
    no_show_policy_accepted: bool = False

    def service_types(self) -> list[str]:
        types = []
        for service in self.services:
            if service.category_key and service.category_key not in types:
                types.append(service.category_key)
        return types

    def to_wire(self) -> dict:
        data = self.model_dump(exclude_none=True, exclude={"technicians"})
        if self.technicians is not None:
            data["technicians"] = self.technicians.to_wire()
        return data
