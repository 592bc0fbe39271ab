import logging
from fastapi import APIRouter, HTTPException
from ..core.accounts import check_registration
from ..core.errors import CatalogRequestFailure
from ..core.models import LoginRequest, LoginResponse, RegisterRequest, RegisterResponse
from ..remote import catalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Admin login",
    description=(
        "Checks the credentials against the catalog API and returns its token.\n"
        "Only accounts flagged `isAdmin` are let through (403 otherwise)."
    ),
)
def login(body: LoginRequest):
    try:
        data = catalog.admin_login(body.email, body.password)
    except (KeyError, CatalogRequestFailure) as e:
        logger.info("Admin login failed for %s: %s", body.email, e)
        raise HTTPException(status_code=401, detail="Invalid credentials or server error.")
    if not data.get("isAdmin") or not data.get("token"):
        raise HTTPException(status_code=403, detail="Access denied. Not an admin user.")
    return LoginResponse(token=data["token"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=201,
    summary="Register a new admin",
    description=(
        "All fields are required. The email must look like an address and the password\n"
        "must be exactly 8 characters with at least one digit. When the catalog API\n"
        "rejects the account its `message` is returned as the error detail."
    ),
)
def register(body: RegisterRequest):
    try:
        check_registration(body.name, body.email, body.password)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    try:
        data = catalog.register_admin(body.name, body.email, body.password)
    except CatalogRequestFailure as e:
        logger.warning("Admin registration for %s failed: %s", body.email, e.to_dict())
        message = e.context.get("server_message")
        if message:
            raise HTTPException(status_code=400, detail=message)
        raise HTTPException(status_code=502, detail="Server error. Please try again later.")
    return RegisterResponse(message=data.get("message") or "Registration successful!")
