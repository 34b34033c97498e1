"""
Listing store tests: pending creation, the one-shot transition and
the catalogue operations.
"""

import pytest

from carmarket.app.core.exceptions import (
    ListingValidationError, ResourceNotFoundError, InvalidStateError
)
from carmarket.app.models.enums import CarStatus, OwnerType, UserRole
from carmarket.app.services import listing_store
from carmarket.app.services.listing_store import ListingTransition, CarSearchParams


@pytest.mark.asyncio
async def test_create_pending_ignores_client_status(db_session, owner, car_payload):
    car = await listing_store.create_pending(
        db_session, owner, {**car_payload, "status": "active", "is_featured": True}
    )

    assert car.id is not None
    assert car.status == CarStatus.PENDING
    assert car.is_featured is False
    assert car.owner_id == owner.id
    assert car.owner_type == OwnerType.PRIVATE
    assert car.location_city == "Austin"
    assert car.slug.startswith("honda-civic-2020-2020-civic-")


@pytest.mark.asyncio
async def test_dealer_listings_are_marked(db_session, create_user, car_payload):
    dealer = await create_user(UserRole.DEALER)
    car = await listing_store.create_pending(db_session, dealer, car_payload)

    assert car.owner_type == OwnerType.DEALER


@pytest.mark.asyncio
async def test_invalid_submission_persists_nothing(db_session, owner, car_payload):
    with pytest.raises(ListingValidationError) as exc_info:
        await listing_store.create_pending(db_session, owner, {**car_payload, "fuel_type": "steam", "mileage": -1})

    assert {v["field"] for v in exc_info.value.violations} == {"fuel_type", "mileage"}
    cars, total = await listing_store.list_cars(db_session)
    assert total == 0


@pytest.mark.asyncio
async def test_find_by_id_missing(db_session):
    with pytest.raises(ResourceNotFoundError):
        await listing_store.find_by_id(db_session, 999)


@pytest.mark.asyncio
async def test_activate_transition(db_session, owner, admin, car_payload):
    car = await listing_store.create_pending(db_session, owner, car_payload)

    activated = await listing_store.transition_status(
        db_session, car.id, ListingTransition.ACTIVATE, verified_by_id=admin.id
    )

    assert activated.status == CarStatus.ACTIVE
    assert activated.is_available is True
    assert activated.is_verified is True
    assert activated.verified_by_id == admin.id


@pytest.mark.asyncio
async def test_delete_transition_removes_listing(db_session, owner, car_payload):
    car = await listing_store.create_pending(db_session, owner, car_payload)
    car_id = car.id

    removed = await listing_store.transition_status(db_session, car_id, ListingTransition.DELETE)

    assert removed.title == "2020 Civic"
    with pytest.raises(ResourceNotFoundError):
        await listing_store.find_by_id(db_session, car_id)


@pytest.mark.asyncio
async def test_transition_is_one_shot(db_session, owner, car_payload):
    car = await listing_store.create_pending(db_session, owner, car_payload)
    await listing_store.transition_status(db_session, car.id, ListingTransition.ACTIVATE)

    with pytest.raises(InvalidStateError) as exc_info:
        await listing_store.transition_status(db_session, car.id, ListingTransition.ACTIVATE)

    assert exc_info.value.error_code == "ERR_STATE_001"
    assert exc_info.value.details["current_status"] == "active"


@pytest.mark.asyncio
async def test_stale_read_loses_the_race(session_factory, owner, car_payload):
    """
    A caller that read the listing while it was still pending must not
    transition it after someone else already has.
    """
    async with session_factory() as setup:
        car = await listing_store.create_pending(setup, owner, car_payload)
        car_id = car.id

    async with session_factory() as slow, session_factory() as fast:
        stale = await listing_store.find_by_id(slow, car_id)
        assert stale.status == CarStatus.PENDING

        await listing_store.transition_status(fast, car_id, ListingTransition.ACTIVATE)

        with pytest.raises(InvalidStateError) as exc_info:
            await listing_store.transition_status(slow, car_id, ListingTransition.DELETE)
        assert exc_info.value.message == "Car listing has already been processed"

    async with session_factory() as check:
        car = await listing_store.find_by_id(check, car_id)
        assert car.status == CarStatus.ACTIVE


@pytest.mark.asyncio
async def test_search_only_returns_live_listings(db_session, owner, car_payload):
    pending = await listing_store.create_pending(db_session, owner, car_payload)
    live = await listing_store.create_pending(
        db_session, owner, {**car_payload, "title": "2018 Toyota Corolla", "make": "Toyota", "model": "Corolla", "price": 14000}
    )
    await listing_store.transition_status(db_session, live.id, ListingTransition.ACTIVATE)

    cars, total = await listing_store.search_cars(db_session, CarSearchParams())

    assert total == 1
    assert [c.id for c in cars] == [live.id]
    assert pending.id not in [c.id for c in cars]


@pytest.mark.asyncio
async def test_search_filters_and_sort(db_session, owner, car_payload):
    ids = []
    for title, make, price in (("Cheap Honda Fit", "Honda", 9000), ("Pricey Honda Accord", "Honda", 26000), ("Ford Focus hatch", "Ford", 12000)):
        car = await listing_store.create_pending(db_session, owner, {**car_payload, "title": title, "make": make, "price": price})
        await listing_store.transition_status(db_session, car.id, ListingTransition.ACTIVATE)
        ids.append(car.id)

    cars, total = await listing_store.search_cars(
        db_session, CarSearchParams(make="honda", max_price=30000), sort="price_asc"
    )
    assert total == 2
    assert [c.price for c in cars] == [9000, 26000]

    cars, total = await listing_store.search_cars(db_session, CarSearchParams(search="focus"))
    assert [c.id for c in cars] == [ids[2]]


@pytest.mark.asyncio
async def test_toggle_favorite(db_session, owner, create_user, car_payload):
    buyer = await create_user()
    car = await listing_store.create_pending(db_session, owner, car_payload)

    assert await listing_store.toggle_favorite(db_session, buyer.id, car.id) == (True, 1)
    cars, total = await listing_store.list_favorite_cars(db_session, buyer.id)
    assert total == 1

    assert await listing_store.toggle_favorite(db_session, buyer.id, car.id) == (False, 0)


@pytest.mark.asyncio
async def test_owner_status_change_requires_approval(db_session, owner, car_payload):
    car = await listing_store.create_pending(db_session, owner, car_payload)

    with pytest.raises(InvalidStateError):
        await listing_store.set_owner_status(db_session, car, CarStatus.SOLD)

    car = await listing_store.transition_status(db_session, car.id, ListingTransition.ACTIVATE)
    car = await listing_store.set_owner_status(db_session, car, CarStatus.SOLD)
    assert car.status == CarStatus.SOLD
    assert car.is_available is False

    with pytest.raises(ListingValidationError):
        await listing_store.set_owner_status(db_session, car, CarStatus.PENDING)


@pytest.mark.asyncio
async def test_update_listing_keeps_status(db_session, owner, car_payload):
    car = await listing_store.create_pending(db_session, owner, car_payload)

    car = await listing_store.update_listing(db_session, car, {"price": 17500, "status": "active"})

    assert car.price == 17500
    assert car.status == CarStatus.PENDING


@pytest.mark.asyncio
async def test_update_listing_can_clear_optional_fields(db_session, owner, car_payload):
    car = await listing_store.create_pending(
        db_session, owner, {**car_payload, "vin": "1HGCM82633A004352", "drivetrain": "fwd"}
    )
    assert car.vin == "1HGCM82633A004352"

    car = await listing_store.update_listing(db_session, car, {"vin": None, "drivetrain": None})

    assert car.vin is None
    assert car.drivetrain is None
    assert car.title == "2020 Civic"


@pytest.mark.asyncio
async def test_unknown_sort_is_rejected(db_session):
    with pytest.raises(ListingValidationError) as exc_info:
        await listing_store.search_cars(db_session, CarSearchParams(), sort="cheapest")

    assert exc_info.value.violations[0]["field"] == "sort"
