"""
Unit tests for listing field validation.

Validation reports every violated field at once and never trusts
client-supplied moderation fields.
"""

from datetime import datetime

from carmarket.app.models.enums import FuelType, Transmission, CarCondition, Drivetrain
from carmarket.app.services.listing_store import validate_listing_fields, Valid, Invalid


def _fields(car_payload, **overrides):
    fields = dict(car_payload)
    fields.update(overrides)
    return fields


def test_valid_submission(car_payload):
    result = validate_listing_fields(car_payload)

    assert isinstance(result, Valid)
    assert result.value["fuel_type"] == FuelType.GASOLINE
    assert result.value["transmission"] == Transmission.AUTOMATIC


def test_every_violation_is_reported(car_payload):
    """Bad enums and out-of-range numbers are all listed, not just the first."""
    result = validate_listing_fields(_fields(
        car_payload,
        fuel_type="steam",
        transmission="telepathic",
        year=1850,
        price=-5,
    ))

    assert isinstance(result, Invalid)
    fields = {error["field"] for error in result.errors}
    assert fields == {"fuel_type", "transmission", "year", "price"}


def test_missing_required_fields():
    result = validate_listing_fields({})

    assert isinstance(result, Invalid)
    fields = {error["field"] for error in result.errors}
    for required in (
        "title", "description", "make", "model", "year", "mileage", "price",
        "fuel_type", "transmission", "category", "condition", "listing_type",
    ):
        assert required in fields


def test_year_upper_bound_is_next_year(car_payload):
    next_year = datetime.utcnow().year + 1

    assert isinstance(validate_listing_fields(_fields(car_payload, year=next_year)), Valid)
    assert isinstance(validate_listing_fields(_fields(car_payload, year=next_year + 1)), Invalid)


def test_title_and_description_lengths(car_payload):
    result = validate_listing_fields(_fields(car_payload, title="Car", description="too short"))

    assert isinstance(result, Invalid)
    assert {e["field"] for e in result.errors} == {"title", "description"}


def test_client_status_is_dropped(car_payload):
    result = validate_listing_fields(_fields(car_payload, status="active", views=1000, owner_id=42))

    assert isinstance(result, Valid)
    assert "status" not in result.value
    assert "views" not in result.value
    assert "owner_id" not in result.value


def test_enum_values_are_case_insensitive(car_payload):
    result = validate_listing_fields(_fields(
        car_payload, condition="Like-New", drivetrain="4WD", transmission="Semi-Automatic"
    ))

    assert isinstance(result, Valid)
    assert result.value["condition"] == CarCondition.LIKE_NEW
    assert result.value["drivetrain"] == Drivetrain.FOUR_WD
    assert result.value["transmission"] == Transmission.SEMI_AUTOMATIC


def test_vin_is_normalized_and_checked(car_payload):
    ok = validate_listing_fields(_fields(car_payload, vin="1hgcm82633a004352", license_plate="abc 123"))
    assert isinstance(ok, Valid)
    assert ok.value["vin"] == "1HGCM82633A004352"
    assert ok.value["license_plate"] == "ABC 123"

    # I, O and Q never appear in a VIN
    bad = validate_listing_fields(_fields(car_payload, vin="1HGCM82633A00435O"))
    assert isinstance(bad, Invalid)
    assert bad.errors[0]["field"] == "vin"


def test_partial_only_checks_supplied_keys():
    assert isinstance(validate_listing_fields({"price": 15000}, partial=True), Valid)

    result = validate_listing_fields({"price": -1, "fuel_type": "coal"}, partial=True)
    assert isinstance(result, Invalid)
    assert {e["field"] for e in result.errors} == {"price", "fuel_type"}


def test_optional_enum_may_be_blank(car_payload):
    result = validate_listing_fields(_fields(car_payload, body_type="", drivetrain=None))

    assert isinstance(result, Valid)
    assert result.value["body_type"] is None


def test_non_text_values_are_reported_not_raised(car_payload):
    result = validate_listing_fields(_fields(car_payload, title=12345, make=7))

    assert isinstance(result, Invalid)
    fields = {error["field"] for error in result.errors}
    assert fields == {"title", "make"}
