from typing import Any


class CatalogAdminError(Exception):
    """Base error carrying a short machine code plus context.

    Routers turn these into HTTP errors; `code` becomes the `detail` prefix.
    """

    code = "catalog_admin_error"

    def __init__(self, message: str = "", **context: Any) -> None:
        self.message = message or self.code
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, **self.context}


class UploadTransportFailure(CatalogAdminError):
    """The batch upload request failed at the network or server level."""

    code = "upload_failed"


class UploadReconciliationFailure(CatalogAdminError):
    """The upload succeeded but no identifiers could be read back."""

    code = "upload_reconciliation_failed"


class PartialReconciliation(UploadReconciliationFailure):
    """Fewer identifiers came back than files were sent.

    Only raised under the "abort" partial upload policy; otherwise the
    shortfall is logged and the unmatched files are dropped.
    """

    code = "upload_partially_reconciled"


class CatalogRequestFailure(CatalogAdminError):
    """Any other call to the remote catalog API failed."""

    code = "catalog_request_failed"


class InvalidProductForm(CatalogAdminError):
    code = "invalid_product_form"


class SessionBusy(CatalogAdminError):
    """A submit is already in flight for this editor session."""

    code = "session_busy"
