import os
from pydantic import BaseModel
from typing import Optional

class Settings(BaseModel):
    """for reading environment-driven configuration.

    Values have sensible defaults for a locally running catalog API.
    """
    api_base: str = os.getenv("CATALOG_API_BASE", "http://localhost:5000")
    api_token: Optional[str] = os.getenv("CATALOG_API_TOKEN")
    request_timeout: float = float(os.getenv("REQUEST_TIMEOUT", "15"))
    upload_timeout: float = float(os.getenv("UPLOAD_TIMEOUT", "60"))
    # "degrade" keeps the resolved prefix, "abort" refuses to save
    partial_upload_policy: str = os.getenv("PARTIAL_UPLOAD_POLICY", "degrade")
    # seconds an untouched editor session is kept; 0 keeps sessions forever
    session_ttl: float = float(os.getenv("SESSION_TTL", "1800"))

settings = Settings()
