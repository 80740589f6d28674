from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

OPTIONAL_FIELDS = ("address_line2", "phone_number", "tax_id", "company_name")


class BillingDetails(BaseModel):
    """Billing address as edited in the checkout form.

    Field values are kept as typed; whether they are acceptable is decided by
    ``app.billing.validation.validate`` so that an incomplete form can still be
    represented, re-validated and re-formatted.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    full_name: str = ""
    country: str = ""
    address_line1: str = ""
    address_line2: str | None = None
    city: str = ""
    state: str = ""
    postal_code: str = ""
    phone_number: str | None = None
    tax_id: str | None = None
    company_name: str | None = None

    @field_validator("full_name", "country", "address_line1", "city", "state", "postal_code", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return "" if value is None else value

    def with_country(self, country: str) -> "BillingDetails":
        """Switch country; postal code and phone number are cleared since they
        only make sense under the previous country's rules."""
        return self.model_copy(update={"country": country, "postal_code": "", "phone_number": ""})


class ValidationResult(BaseModel):
    errors: dict[str, str] = Field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors

    def error_for(self, field: str) -> str | None:
        return self.errors.get(field)
