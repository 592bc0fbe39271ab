from typing import Optional
import httpx
from ..core.config import settings

def catalog_client(timeout: Optional[float] = None) -> httpx.Client:
    """Create an HTTP client for the remote catalog API using our configured base/token."""
    headers = {"Accept": "application/json"}
    if settings.api_token:
        headers["Authorization"] = f"Bearer {settings.api_token}"
    return httpx.Client(
        base_url=settings.api_base,
        headers=headers,
        timeout=timeout if timeout is not None else settings.request_timeout,
    )
