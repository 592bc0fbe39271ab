import logging
from fastapi import FastAPI
from .core.config import settings
from .routers.auth import router as auth_router
from .routers.editor import router as editor_router
from .routers.offers import router as offers_router
from .routers.products import router as products_router

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

tags_metadata = [
    {"name": "auth", "description": "Admin login and registration against the catalog API."},
    {
        "name": "products",
        "description": (
            "List and delete haircare/skincare products.\n\n"
            "- Stored image references are returned as-is plus resolved `image_srcs`."
        ),
    },
    {
        "name": "editor",
        "description": (
            "Add/edit products with an ordered image list.\n\n"
            "- Existing images and newly selected files can be mixed, reordered and removed.\n"
            "- Submit uploads only the new files, in one batch, and saves the images in slot order.\n"
            "- A failed upload saves nothing; the session stays open for a retry."
        ),
    },
    {"name": "offers", "description": "Apply percentage discounts against a product's original price and upload offer images."},
]

app = FastAPI(
    title="Catalog Admin",
    description=(
        "How to Use:\n\n"
        "1) Log in: POST /admin/login with an admin account.\n"
        "2) Browse: GET /products/{category} for `haircare` or `skincare`.\n"
        "3) Edit: POST /editor/sessions (add) or /editor/sessions/edit (edit), then add files, "
        "move or remove images, and POST /editor/sessions/{id}/submit to save.\n"
        "4) Offers: GET /offers and POST /offers/{product_id} with a discount percentage.\n\n"
        f"Catalog API: {settings.api_base}"
    ),
    openapi_tags=tags_metadata,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.include_router(auth_router)
app.include_router(products_router)
app.include_router(editor_router)
app.include_router(offers_router)
