import pytest

from catalog_admin.core.offers import canonical_original_price, discounted_price, offer_update


def test_discounted_price_rounds_to_cents_success():
    assert discounted_price(999, 15) == 849.15
    assert discounted_price(100, 0) == 100
    assert discounted_price(100, 100) == 0


def test_canonical_original_price_precedence_success():
    assert canonical_original_price({"originalPrice": 10, "oldPrice": 20, "price": 5}, 30) == 10
    assert canonical_original_price({"oldPrice": 20, "price": 5}, 30) == 20
    assert canonical_original_price({"price": 5}, 30) == 30
    assert canonical_original_price({"price": 5}) == 5


def test_offer_update_keeps_existing_original_success():
    body = offer_update({"originalPrice": 200, "price": 150, "offer": 25}, "10")
    assert body == {"price": 180.0, "oldPrice": 200.0, "originalPrice": 200, "offer": 10.0}


@pytest.mark.parametrize("discount", [-1, 100.5, "abc", None])
def test_offer_update_invalid_discount_failure(discount):
    with pytest.raises(ValueError, match="invalid_discount"):
        offer_update({"price": 100}, discount)


@pytest.mark.parametrize("product", [{"price": 0}, {"price": "n/a"}, {}])
def test_offer_update_invalid_original_failure(product):
    with pytest.raises(ValueError, match="invalid_original_price"):
        offer_update(product, 10)
