import logging
from typing import Optional
from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from ..core.errors import CatalogRequestFailure, UploadTransportFailure
from ..core.models import ApplyOfferRequest, OfferImageResponse, OfferResponse, ProductListResponse
from ..core.offers import offer_update
from ..editor.reconciler import normalize_upload_response
from ..remote import catalog
from .products import with_image_srcs

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/offers", tags=["offers"])

CATEGORY_LABELS = {"skincare": "Skincare", "haircare": "Haircare"}


@router.get(
    "",
    response_model=ProductListResponse,
    summary="List products for offers",
    description=(
        "Skincare and haircare products in one list, each tagged with its `category`.\n"
        "`search` filters by name, case-insensitively."
    ),
)
def list_offer_products(search: Optional[str] = Query(None, description="Substring of the product name")):
    items = []
    try:
        for category, label in CATEGORY_LABELS.items():
            items.extend({**with_image_srcs(p), "category": label} for p in catalog.list_products(category))
    except CatalogRequestFailure as e:
        logger.warning("Listing products for offers failed: %s", e)
        raise HTTPException(status_code=502, detail="Failed to fetch products")

    term = (search or "").strip().lower()
    if term:
        items = [p for p in items if term in (p.get("name") or "").lower()]
    return ProductListResponse(count=len(items), items=items)


@router.post(
    "/image",
    response_model=OfferImageResponse,
    summary="Upload an offer image",
    description=(
        "Sends one banner image to the catalog upload endpoint as the `image` field.\n"
        "Any non-2xx answer from the catalog is reported as a failed upload (502)."
    ),
)
async def upload_offer_image(image: UploadFile = File(...)):
    filename = image.filename or "offer-image"
    part = (filename, await image.read(), image.content_type or "application/octet-stream")
    try:
        body = catalog.upload_offer_image(part)
    except UploadTransportFailure as e:
        logger.warning("Offer image upload failed: %s", e.to_dict())
        raise HTTPException(status_code=502, detail="Failed to upload offer image")
    return OfferImageResponse(filename=filename, file_ids=normalize_upload_response(body))


@router.post(
    "/{product_id}",
    response_model=OfferResponse,
    summary="Apply an offer",
    description=(
        "Applies a percentage discount to a product.\n\n"
        "The product is re-read first; its stored `originalPrice` (or `oldPrice`) is the\n"
        "base for the discount and is never overwritten. `base_price` is only used when\n"
        "the product has neither."
    ),
)
def apply_offer(product_id: str, body: ApplyOfferRequest):
    try:
        product = catalog.get_product(body.category, product_id)
        update = offer_update(product, body.discount, body.base_price)
        catalog.save_product(body.category, update, product_id)
        return OfferResponse(product_id=product_id, **update)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except KeyError:
        raise HTTPException(status_code=404, detail="not_found")
    except CatalogRequestFailure as e:
        logger.warning("Applying offer to %s failed: %s", product_id, e)
        raise HTTPException(status_code=502, detail="Failed to apply offer")
