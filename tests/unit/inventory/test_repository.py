"""Unit tests for InventoryDjangoRepository."""

import pytest
from django.db import IntegrityError, transaction

from modules.inventory.exceptions import InsufficientStock
from modules.inventory.models import InventoryItem
from modules.inventory.repositories.django_repository import InventoryDjangoRepository


@pytest.fixture()
def repo():
    return InventoryDjangoRepository()


class TestLookups:
    def test_get_by_name(self, repo, mug):
        assert repo.get_by_name("Mug") == mug
        assert repo.get_by_name("mug") is None

    def test_get_by_id_invalid_uuid(self, repo):
        assert repo.get_by_id("not-a-uuid") is None

    def test_estimated_minutes_skips_uncatalogued(self, repo, mug, lanyard):
        minutes = repo.estimated_minutes_for(["Mug", "University Lanyard", "Poster"])
        assert minutes == {"Mug": 5, "University Lanyard": 3}

    def test_list_with_filters(self, repo, mug, lanyard):
        lanyard.is_available = False
        repo.save(lanyard)

        assert repo.list({"is_available": True}) == [mug]


class TestReservation:
    def test_locked_rows_come_back_by_name(self, repo, mug, lanyard):
        with transaction.atomic():
            rows = repo.get_for_update_by_names(["University Lanyard", "Mug", "Poster"])

        assert set(rows) == {"Mug", "University Lanyard"}

    def test_reserve_decrements(self, repo, mug):
        with transaction.atomic():
            item = repo.get_for_update_by_names(["Mug"])["Mug"]
            repo.reserve(item, 4)

        mug.refresh_from_db()
        assert mug.quantity == 6

    def test_reserve_more_than_on_hand(self, repo, lanyard):
        with transaction.atomic():
            item = repo.get_for_update_by_names(["University Lanyard"])[
                "University Lanyard"
            ]
            with pytest.raises(InsufficientStock) as exc_info:
                repo.reserve(item, 4)

        assert exc_info.value.available == 3
        assert exc_info.value.requested == 4
        assert "University Lanyard" in str(exc_info.value)
        lanyard.refresh_from_db()
        assert lanyard.quantity == 3

    def test_restock(self, repo, mug):
        with transaction.atomic():
            item = repo.get_for_update_by_names(["Mug"])["Mug"]
            repo.restock(item, 2)

        mug.refresh_from_db()
        assert mug.quantity == 12


def test_quantity_cannot_go_negative(mug):
    with pytest.raises(IntegrityError), transaction.atomic():
        InventoryItem.objects.filter(pk=mug.pk).update(quantity=-1)
