import logging
from fastapi import APIRouter, HTTPException
from ..core.errors import CatalogRequestFailure
from ..core.models import Category, ProductListResponse
from ..remote import catalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


def with_image_srcs(product: dict) -> dict:
    """Copy of the product with `image_srcs` resolved for display; `images` is untouched."""
    images = product.get("images") if isinstance(product.get("images"), list) else []
    return {**product, "image_srcs": [catalog.image_src(ref) for ref in images if isinstance(ref, str)]}


@router.get(
    "/{category}",
    response_model=ProductListResponse,
    summary="List products",
    description=(
        "Returns every product of a category (`haircare` or `skincare`).\n\n"
        "Each item keeps its stored `images` and gains `image_srcs`, the same\n"
        "references resolved to loadable URLs."
    ),
)
def list_products(category: Category):
    try:
        items = [with_image_srcs(p) for p in catalog.list_products(category)]
        return ProductListResponse(count=len(items), items=items)
    except CatalogRequestFailure as e:
        logger.warning("Listing %s failed: %s", category, e)
        raise HTTPException(status_code=502, detail="Failed to fetch products")


@router.delete(
    "/{category}/{product_id}",
    summary="Delete a product",
    description="Deletes the product from the catalog. Returns 404 if it does not exist.",
)
def delete_product(category: Category, product_id: str):
    try:
        catalog.delete_product(category, product_id)
        return {"deleted": product_id}
    except KeyError:
        raise HTTPException(status_code=404, detail="not_found")
    except CatalogRequestFailure as e:
        logger.warning("Deleting %s/%s failed: %s", category, product_id, e)
        raise HTTPException(status_code=502, detail="Failed to delete product")
