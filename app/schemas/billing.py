from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.billing.models import BillingDetails

FormattableField = Literal["postalCode", "phoneNumber"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CountryOption(BaseModel):
    value: str
    label: str


class CountryListResponse(BaseModel):
    countries: list[CountryOption] = Field(default_factory=list)
    default_country: str


class FieldText(BaseModel):
    label: str
    placeholder: str


class CountryFieldsResponse(CamelModel):
    country: str
    rule: str
    fields: dict[str, FieldText]


class FormatFieldRequest(BaseModel):
    value: str = Field(default="", max_length=200)
    country: str = Field(default="", max_length=10)
    field: FormattableField


class FormatFieldResponse(BaseModel):
    value: str


class ValidationResponse(BaseModel):
    valid: bool
    errors: dict[str, str] = Field(default_factory=dict)


class BillingDetailsRecord(BillingDetails):
    user_id: str
    created_at: datetime
    updated_at: datetime
