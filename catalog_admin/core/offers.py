from typing import Any, Dict, Optional


def discounted_price(original: float, discount: float) -> float:
    return round(original - (original * discount) / 100, 2)


def canonical_original_price(product: Dict[str, Any], base_price: Optional[float] = None) -> Any:
    """The price an offer is computed against.

    A stored `originalPrice` (then `oldPrice`) always wins over what the
    admin typed, so repeated offers never compound.
    """
    for key in ("originalPrice", "oldPrice"):
        if product.get(key) is not None:
            return product[key]
    if base_price is not None:
        return base_price
    return product.get("price")


def offer_update(product: Dict[str, Any], discount: Any, base_price: Optional[float] = None) -> Dict[str, Any]:
    """Body for the product update that applies `discount` percent."""
    try:
        pct = float(discount)
    except (TypeError, ValueError):
        raise ValueError("invalid_discount")
    if not 0 <= pct <= 100:
        raise ValueError("invalid_discount")

    try:
        original = float(canonical_original_price(product, base_price))
    except (TypeError, ValueError):
        raise ValueError("invalid_original_price")
    if original <= 0:
        raise ValueError("invalid_original_price")

    return {
        "price": discounted_price(original, pct),
        "oldPrice": original,
        "originalPrice": product.get("originalPrice") or original,
        "offer": pct,
    }
