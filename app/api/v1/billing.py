import logging
import sqlite3

from fastapi import APIRouter, Header, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from app.billing import BillingDetails, format_field, get_country_rules, validate
from app.core.billing_store import delete_billing_details, get_billing_details, save_billing_details
from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.core.security import check_api_key, require_user_id
from app.schemas.billing import (
    BillingDetailsRecord,
    CountryFieldsResponse,
    CountryListResponse,
    CountryOption,
    FieldText,
    FormatFieldRequest,
    FormatFieldResponse,
    ValidationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_record(record: dict) -> BillingDetailsRecord:
    details: BillingDetails = record["details"]
    return BillingDetailsRecord(
        **details.model_dump(),
        user_id=record["user_id"],
        created_at=record["created_at"],
        updated_at=record["updated_at"],
    )


def normalize_for_submission(details: BillingDetails) -> BillingDetails:
    country = (details.country or "").strip().upper()
    return details.model_copy(
        update={
            "country": country,
            "postal_code": format_field(details.postal_code, country, "postalCode"),
            "phone_number": format_field(details.phone_number, country, "phoneNumber"),
        }
    )


@router.get("/billing/countries", response_model=CountryListResponse)
@rate_limit()
async def list_countries(
    request: Request,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    _ = request
    check_api_key(x_api_key)
    rules = get_country_rules()
    return CountryListResponse(
        countries=[CountryOption(value=code, label=name) for code, name in rules.selectable_countries()],
        default_country=settings.default_country,
    )


@router.get("/billing/countries/{country_code}/fields", response_model=CountryFieldsResponse)
@rate_limit()
async def country_fields(
    request: Request,
    country_code: str,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    _ = request
    check_api_key(x_api_key)
    rule = get_country_rules().resolve(country_code)
    return CountryFieldsResponse(
        country=country_code.strip().upper(),
        rule=rule.code,
        fields={name: FieldText(**text) for name, text in rule.field_labels().items()},
    )


@router.post("/billing/format", response_model=FormatFieldResponse)
@rate_limit()
async def format_billing_field(
    request: Request,
    payload: FormatFieldRequest,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    _ = request
    check_api_key(x_api_key)
    return FormatFieldResponse(value=format_field(payload.value, payload.country, payload.field))


@router.post("/billing/validate", response_model=ValidationResponse)
@rate_limit()
async def validate_billing_details(
    request: Request,
    payload: BillingDetails,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    _ = request
    check_api_key(x_api_key)
    result = validate(payload)
    return ValidationResponse(valid=result.valid, errors=result.errors)


@router.get("/user/billing-details", response_model=BillingDetailsRecord, response_model_by_alias=True)
@rate_limit()
async def read_billing_details(
    request: Request,
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    _ = request
    check_api_key(x_api_key)
    user_id = require_user_id(x_user_id)
    try:
        record = get_billing_details(user_id)
    except sqlite3.Error as exc:
        logger.exception("billing_details_read_failed user_id=%s", user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve billing details",
        ) from exc

    if record is None:
        logger.info("billing_details_not_found user_id=%s", user_id)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Billing details not found.")
    return _to_record(record)


@router.post("/user/billing-details", response_model=BillingDetailsRecord, response_model_by_alias=True)
@rate_limit()
async def submit_billing_details(
    request: Request,
    payload: BillingDetails,
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    _ = request
    check_api_key(x_api_key)
    user_id = require_user_id(x_user_id)

    details = normalize_for_submission(payload)
    result = validate(details)
    if not result.valid:
        logger.info("billing_details_rejected user_id=%s fields=%s", user_id, sorted(result.errors))
        return JSONResponse(
            status_code=422,
            content={"message": "Please correct the highlighted fields.", "errors": result.errors},
        )

    try:
        record = save_billing_details(user_id, details)
    except (sqlite3.Error, RuntimeError) as exc:
        logger.exception("billing_details_save_failed user_id=%s", user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update billing details",
        ) from exc

    logger.info("billing_details_saved user_id=%s country=%s", user_id, details.country)
    return _to_record(record)


@router.delete("/user/billing-details", status_code=status.HTTP_204_NO_CONTENT)
@rate_limit()
async def remove_billing_details(
    request: Request,
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    _ = request
    check_api_key(x_api_key)
    user_id = require_user_id(x_user_id)
    try:
        deleted = delete_billing_details(user_id)
    except sqlite3.Error as exc:
        logger.exception("billing_details_delete_failed user_id=%s", user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete billing details",
        ) from exc

    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Billing details not found.")
    logger.info("billing_details_deleted user_id=%s", user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
