"""Tests for cart line management."""

import pytest

from conftest import ALICE_ID, BOB_ID, RUNNER_ID, TRAIL_ID, stock_of
from storefront.domain.errors import InsufficientStockError, NotFoundError, ValidationError
from storefront.repos.product_repo import ProductRepo
from storefront.services.cart_service import CartService


@pytest.fixture()
def cart(db):
    return CartService(db)


class TestAddItem:
    def test_add_creates_line(self, cart):
        item = cart.add_item(ALICE_ID, RUNNER_ID, 42, 2)
        assert item.id is not None
        assert item.quantity == 2
        assert item.size == 42
        assert item.product_name == "Wild Berry Runner"

    def test_add_same_product_and_size_merges(self, cart):
        first = cart.add_item(ALICE_ID, RUNNER_ID, 42, 2)
        second = cart.add_item(ALICE_ID, RUNNER_ID, 42, 3)

        assert second.id == first.id
        items = cart.list_items(ALICE_ID)
        assert len(items) == 1
        assert items[0].quantity == 5

    def test_different_size_is_a_separate_line(self, cart):
        cart.add_item(ALICE_ID, RUNNER_ID, 42, 1)
        cart.add_item(ALICE_ID, RUNNER_ID, 43, 1)
        assert [(i.size, i.quantity) for i in cart.list_items(ALICE_ID)] == [(42, 1), (43, 1)]

    def test_merge_above_stock_fails_and_keeps_quantity(self, cart):
        # stock=5: 2 + 3 fits, one more does not
        cart.add_item(ALICE_ID, RUNNER_ID, 42, 2)
        cart.add_item(ALICE_ID, RUNNER_ID, 42, 3)

        with pytest.raises(InsufficientStockError) as exc:
            cart.add_item(ALICE_ID, RUNNER_ID, 42, 1)

        assert exc.value.product_id == RUNNER_ID
        assert "Current in cart: 5" in str(exc.value)
        items = cart.list_items(ALICE_ID)
        assert len(items) == 1
        assert items[0].quantity == 5

    def test_new_line_above_stock_fails(self, cart):
        with pytest.raises(InsufficientStockError):
            cart.add_item(ALICE_ID, RUNNER_ID, 42, 6)
        assert cart.list_items(ALICE_ID) == []

    def test_add_never_touches_stock(self, cart, db):
        cart.add_item(ALICE_ID, RUNNER_ID, 42, 4)
        assert stock_of(db, RUNNER_ID) == 5

    @pytest.mark.parametrize("quantity", [0, -1, 101])
    def test_quantity_out_of_range(self, cart, quantity):
        with pytest.raises(ValidationError):
            cart.add_item(ALICE_ID, RUNNER_ID, 42, quantity)

    @pytest.mark.parametrize("size", [35, 51])
    def test_size_out_of_range(self, cart, size):
        with pytest.raises(ValidationError):
            cart.add_item(ALICE_ID, RUNNER_ID, size, 1)

    def test_unknown_product(self, cart):
        with pytest.raises(NotFoundError):
            cart.add_item(ALICE_ID, 999, 42, 1)

    def test_unknown_user(self, cart):
        with pytest.raises(NotFoundError):
            cart.add_item(999, RUNNER_ID, 42, 1)

    def test_concurrent_insert_of_same_line_is_merged(self, cart, monkeypatch):
        # the lookup misses the line another request committed meanwhile,
        # the unique constraint rejects the insert and the add merges instead
        cart.add_item(ALICE_ID, RUNNER_ID, 42, 1)
        lookup = cart.repo.get_cart_item
        calls = []

        def stale_then_real(user_id, product_id, size):
            calls.append((user_id, product_id, size))
            if len(calls) == 1:
                return None
            return lookup(user_id, product_id, size)

        monkeypatch.setattr(cart.repo, "get_cart_item", stale_then_real)

        item = cart.add_item(ALICE_ID, RUNNER_ID, 42, 2)

        assert len(calls) == 2
        assert item.quantity == 3
        items = cart.list_items(ALICE_ID)
        assert len(items) == 1
        assert items[0].id == item.id
        assert items[0].quantity == 3

    def test_concurrent_insert_merge_still_checks_stock(self, cart, monkeypatch):
        cart.add_item(ALICE_ID, RUNNER_ID, 42, 4)
        lookup = cart.repo.get_cart_item
        calls = []

        def stale_then_real(user_id, product_id, size):
            calls.append(size)
            return None if len(calls) == 1 else lookup(user_id, product_id, size)

        monkeypatch.setattr(cart.repo, "get_cart_item", stale_then_real)

        with pytest.raises(InsufficientStockError):
            cart.add_item(ALICE_ID, RUNNER_ID, 42, 2)

        assert [i.quantity for i in cart.list_items(ALICE_ID)] == [4]

    def test_carts_are_per_user(self, cart):
        cart.add_item(ALICE_ID, RUNNER_ID, 42, 1)
        cart.add_item(BOB_ID, RUNNER_ID, 42, 1)
        assert len(cart.list_items(ALICE_ID)) == 1
        assert len(cart.list_items(BOB_ID)) == 1


class TestRemoveItem:
    def test_remove(self, cart):
        item = cart.add_item(ALICE_ID, RUNNER_ID, 42, 1)
        cart.remove_item(ALICE_ID, item.id)
        assert cart.list_items(ALICE_ID) == []

    def test_remove_other_users_line(self, cart):
        item = cart.add_item(ALICE_ID, RUNNER_ID, 42, 1)
        with pytest.raises(NotFoundError):
            cart.remove_item(BOB_ID, item.id)
        assert len(cart.list_items(ALICE_ID)) == 1

    def test_remove_missing(self, cart):
        with pytest.raises(NotFoundError):
            cart.remove_item(ALICE_ID, 12345)


class TestUpdateQuantity:
    def test_update(self, cart):
        item = cart.add_item(ALICE_ID, TRAIL_ID, 44, 1)
        updated = cart.update_quantity(ALICE_ID, item.id, 7)
        assert updated.quantity == 7
        assert cart.list_items(ALICE_ID)[0].quantity == 7

    def test_update_above_stock(self, cart):
        item = cart.add_item(ALICE_ID, TRAIL_ID, 44, 1)
        with pytest.raises(InsufficientStockError):
            cart.update_quantity(ALICE_ID, item.id, 11)
        assert cart.list_items(ALICE_ID)[0].quantity == 1

    def test_update_checks_current_stock(self, cart, db):
        item = cart.add_item(ALICE_ID, TRAIL_ID, 44, 1)
        ProductRepo(db).set_stock(TRAIL_ID, 2)
        db.commit()

        with pytest.raises(InsufficientStockError):
            cart.update_quantity(ALICE_ID, item.id, 3)

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_zero_or_negative_deletes(self, cart, quantity):
        item = cart.add_item(ALICE_ID, TRAIL_ID, 44, 2)
        assert cart.update_quantity(ALICE_ID, item.id, quantity) is None
        assert cart.list_items(ALICE_ID) == []

    def test_delete_by_zero_is_idempotent(self, cart):
        item = cart.add_item(ALICE_ID, TRAIL_ID, 44, 2)
        assert cart.update_quantity(ALICE_ID, item.id, 0) is None
        assert cart.update_quantity(ALICE_ID, item.id, 0) is None

    def test_delete_by_zero_of_other_users_line(self, cart):
        item = cart.add_item(ALICE_ID, TRAIL_ID, 44, 2)
        with pytest.raises(NotFoundError):
            cart.update_quantity(BOB_ID, item.id, 0)
        assert [i.quantity for i in cart.list_items(ALICE_ID)] == [2]

    def test_delete_by_zero_of_missing_line(self, cart):
        assert cart.update_quantity(ALICE_ID, 12345, 0) is None

    def test_update_other_users_line(self, cart):
        item = cart.add_item(ALICE_ID, TRAIL_ID, 44, 2)
        with pytest.raises(NotFoundError):
            cart.update_quantity(BOB_ID, item.id, 3)

    def test_update_above_max(self, cart):
        item = cart.add_item(ALICE_ID, TRAIL_ID, 44, 2)
        with pytest.raises(ValidationError):
            cart.update_quantity(ALICE_ID, item.id, 101)


class TestListItems:
    def test_insertion_order(self, cart):
        cart.add_item(ALICE_ID, TRAIL_ID, 44, 1)
        cart.add_item(ALICE_ID, RUNNER_ID, 40, 1)
        cart.add_item(ALICE_ID, TRAIL_ID, 41, 1)
        # merging does not move the line
        cart.add_item(ALICE_ID, TRAIL_ID, 44, 1)

        assert [(i.product_id, i.size) for i in cart.list_items(ALICE_ID)] == [
            (TRAIL_ID, 44),
            (RUNNER_ID, 40),
            (TRAIL_ID, 41),
        ]

    def test_empty(self, cart):
        assert cart.list_items(ALICE_ID) == []
