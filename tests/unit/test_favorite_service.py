"""
Unit tests for favorite businesses.
"""
from uuid import uuid4

import pytest

from servicehub.api.middleware.error_handler import ConflictException, NotFoundException
from servicehub.lib.metrics import get_metrics_collector
from servicehub.services.favorite_service import FavoriteService


@pytest.fixture
def favorites(db_session):
    return FavoriteService(db_session)


@pytest.mark.unit
def test_add_and_list_favorites(favorites, make_business, make_user):
    user = make_user()
    laundry = make_business(name="Fresh Fold")
    cleaner = make_business(name="Clean & Shine")

    favorites.add_favorite(user, laundry.id)
    favorites.add_favorite(user, cleaner.id)

    assert {b.id for b in favorites.list_favorites(user)} == {laundry.id, cleaner.id}
    assert favorites.list_favorites(make_user()) == []
    assert get_metrics_collector().get_counter_value("favorite_changes_total", {"action": "added"}) == 2


@pytest.mark.unit
def test_duplicate_favorite_is_a_conflict(favorites, make_business, make_user):
    user = make_user()
    business = make_business()
    favorites.add_favorite(user, business.id)

    with pytest.raises(ConflictException) as exc_info:
        favorites.add_favorite(user, business.id)

    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Business already in favorites"
    assert len(favorites.list_favorites(user)) == 1


@pytest.mark.unit
def test_favorite_unknown_business(favorites, make_user):
    with pytest.raises(NotFoundException):
        favorites.add_favorite(make_user(), uuid4())


@pytest.mark.unit
def test_remove_and_check(favorites, make_business, make_user):
    user = make_user()
    business = make_business()
    favorites.add_favorite(user, business.id)
    assert favorites.is_favorite(user, business.id) is True

    favorites.remove_favorite(user, business.id)

    assert favorites.is_favorite(user, business.id) is False
    with pytest.raises(NotFoundException):
        favorites.remove_favorite(user, business.id)
