from typing import Any, Dict, List, Optional, Tuple
import logging
import re
import httpx
from ..core.config import settings
from ..core.errors import CatalogRequestFailure, UploadTransportFailure
from . import clients

"""Calls against the remote catalog API: products, uploads, admin accounts.
"""

logger = logging.getLogger(__name__)

# (filename, raw bytes, content type) as sent in the multipart batch
UploadPart = Tuple[str, bytes, str]

OBJECT_ID_RE = re.compile(r"^[a-f\d]{24}$", re.IGNORECASE)
_DUPLICATE_SLASHES_RE = re.compile(r"([^:]/)/+")


def image_src(ref: Optional[str]) -> Optional[str]:
    """Turn a stored image reference into something a browser can load.

    Display only: the stored value is never rewritten.
    """
    if not ref:
        return None
    base = settings.api_base.rstrip("/")
    if OBJECT_ID_RE.match(ref):
        return f"{base}/api/image/{ref}"
    if ref.startswith("http://") or ref.startswith("https://"):
        return ref
    if ref.startswith("/"):
        return f"{base}{ref}"
    return _DUPLICATE_SLASHES_RE.sub(r"\1", f"{base}/{ref}")


def _json_or_empty(resp: httpx.Response) -> Any:
    if not resp.content:
        return {}
    try:
        return resp.json()
    except ValueError:
        return {}


def _request(method: str, path: str, **kwargs: Any) -> httpx.Response:
    try:
        with clients.catalog_client() as client:
            resp = client.request(method, path, **kwargs)
    except httpx.HTTPError as e:
        raise CatalogRequestFailure(f"{method} {path} failed: {e}") from e
    if resp.status_code == 404:
        raise KeyError("not_found")
    if resp.is_error:
        raise CatalogRequestFailure(
            f"{method} {path} returned {resp.status_code}",
            status_code=resp.status_code,
        )
    return resp


def upload_images(parts: List[UploadPart]) -> Any:
    """Send all parts as one multipart request, in the given order.

    The response is matched positionally by the caller, so the order of
    `parts` is the order the server sees. Returns the decoded JSON body.
    """
    files = [("images", part) for part in parts]
    try:
        with clients.catalog_client(timeout=settings.upload_timeout) as client:
            resp = client.post("/api/upload", files=files)
            resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise UploadTransportFailure(
            f"upload returned {e.response.status_code}",
            status_code=e.response.status_code,
        ) from e
    except httpx.HTTPError as e:
        raise UploadTransportFailure(f"upload request failed: {e}") from e

    try:
        return resp.json()
    except ValueError as e:
        raise UploadTransportFailure("upload response is not JSON") from e


def upload_offer_image(part: UploadPart) -> Any:
    """Send one offer banner as the single `image` field of `/api/upload`."""
    try:
        with clients.catalog_client(timeout=settings.upload_timeout) as client:
            resp = client.post("/api/upload", files=[("image", part)])
            resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise UploadTransportFailure(
            f"offer image upload returned {e.response.status_code}",
            status_code=e.response.status_code,
        ) from e
    except httpx.HTTPError as e:
        raise UploadTransportFailure(f"offer image upload failed: {e}") from e
    return _json_or_empty(resp)


def list_products(category: str) -> List[Dict[str, Any]]:
    data = _json_or_empty(_request("GET", f"/api/{category}"))
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return list(data.get("products") or [])
    return []


def get_product(category: str, product_id: str) -> Dict[str, Any]:
    """Fetch a single product; raises KeyError("not_found") when missing."""
    data = _json_or_empty(_request("GET", f"/api/{category}/{product_id}"))
    if isinstance(data, dict) and isinstance(data.get("product"), dict):
        return data["product"]
    if not isinstance(data, dict):
        raise CatalogRequestFailure("product response is not an object")
    return data


def save_product(category: str, payload: Dict[str, Any], product_id: Optional[str] = None) -> Any:
    """Create (no id) or update a product record."""
    if product_id:
        resp = _request("PUT", f"/api/{category}/{product_id}", json=payload)
    else:
        resp = _request("POST", f"/api/{category}", json=payload)
    return _json_or_empty(resp)


def delete_product(category: str, product_id: str) -> None:
    _request("DELETE", f"/api/{category}/{product_id}")


def admin_login(email: str, password: str) -> Dict[str, Any]:
    data = _json_or_empty(
        _request("POST", "/api/admin/login", json={"email": email, "password": password})
    )
    return data if isinstance(data, dict) else {}


def register_admin(name: str, email: str, password: str) -> Dict[str, Any]:
    """Create an admin account.

    On a non-2xx answer the server's `message` (if any) is carried in the
    raised CatalogRequestFailure as `context["server_message"]`.
    """
    path = "/api/admin/register"
    try:
        with clients.catalog_client() as client:
            resp = client.post(path, json={"name": name, "email": email, "password": password})
    except httpx.HTTPError as e:
        raise CatalogRequestFailure(f"POST {path} failed: {e}") from e
    data = _json_or_empty(resp)
    if resp.is_error:
        message = data.get("message") if isinstance(data, dict) else None
        raise CatalogRequestFailure(
            f"POST {path} returned {resp.status_code}",
            status_code=resp.status_code,
            server_message=message,
        )
    return data if isinstance(data, dict) else {}
