from typing import Any, Callable, Dict, List, Optional
import logging
import threading
import time
import uuid
from ..core.config import settings
from ..core.errors import InvalidProductForm, SessionBusy
from ..core.models import ProductForm, SubmitResponse
from ..remote import catalog
from .assembler import assemble_image_refs
from .reconciler import Uploader, reconcile
from .slots import ImageSlotList, PreviewRegistry

"""Editor sessions: one per open add/edit form, each owning its image slots.
"""

logger = logging.getLogger(__name__)

LIST_FIELDS = {
    "haircare": ("hairType", "concern"),
    "skincare": ("skinType", "skinConcern"),
}

Saver = Callable[[str, Dict[str, Any], Optional[str]], Any]


def _split_csv(text: Optional[str]) -> List[str]:
    if not text:
        return []
    return [part.strip() for part in text.split(",") if part.strip()]


def _join_list(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return value or ""


def form_from_product(product: Dict[str, Any]) -> ProductForm:
    price = product.get("price")
    return ProductForm(
        name=product.get("name") or "",
        description=product.get("description") or "",
        price=price if price is not None else "",
        range=product.get("range") or "",
        hairType=_join_list(product.get("hairType")),
        concern=_join_list(product.get("concern")),
        skinType=_join_list(product.get("skinType")),
        skinConcern=_join_list(product.get("skinConcern")),
    )


def build_product_payload(category: str, form: ProductForm, images: List[str]) -> Dict[str, Any]:
    """Product body for the save call; raises InvalidProductForm on a bad price."""
    try:
        price = float(form.price)
    except (TypeError, ValueError):
        raise InvalidProductForm("price must be a number", price=form.price)

    payload: Dict[str, Any] = {
        "name": form.name,
        "description": form.description,
        "price": price,
        "images": images,
        "range": form.range,
    }
    for field in LIST_FIELDS[category]:
        payload[field] = _split_csv(getattr(form, field))
    return payload


class EditSession:
    """State behind one open product editor.

    Edits go through `mutate`, which refuses them while `submit` is running.
    `submit` sets `busy` for its whole duration, uploads a snapshot of the
    slots and assembles the saved list from that same snapshot.
    """

    def __init__(
        self,
        category: str,
        mode: str,
        product_id: Optional[str] = None,
        form: Optional[ProductForm] = None,
        registry: Optional[PreviewRegistry] = None,
    ) -> None:
        self.session_id = uuid.uuid4().hex
        self.category = category
        self.mode = mode
        self.product_id = product_id
        self.form = form or ProductForm()
        self.images = ImageSlotList(registry)
        self.busy = False
        self.closed = False
        self.last_touched = time.monotonic()
        self._lock = threading.Lock()

    def touch(self) -> None:
        self.last_touched = time.monotonic()

    def mutate(self, action: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run one edit of the form or images unless a submit is in flight."""
        with self._lock:
            if self.closed:
                raise KeyError("not_found")
            if self.busy:
                raise SessionBusy("a save is already in progress", session_id=self.session_id)
            self.touch()
            return action(*args, **kwargs)

    def update_form(self, **fields: Any) -> None:
        self.form = self.form.model_copy(update={k: v for k, v in fields.items() if v is not None})

    def close(self) -> None:
        """End the session and release every preview it still holds."""
        with self._lock:
            if self.closed:
                return
            self.closed = True
        self.images.clear()

    def submit(self, upload: Optional[Uploader] = None, save: Optional[Saver] = None) -> SubmitResponse:
        """Upload new images, assemble the ordered list, save the product.

        On any failure the slots and form are left as they were so the admin
        can retry. On success the session is closed.
        """
        with self._lock:
            if self.closed:
                raise KeyError("not_found")
            if self.busy:
                raise SessionBusy("a save is already in progress", session_id=self.session_id)
            self.busy = True
            self.images.frozen = True
            snapshot = self.images.snapshot()

        saved_ok = False
        try:
            # validate before uploading anything
            build_product_payload(self.category, self.form, [])

            reconciliation = reconcile(snapshot, upload=upload)
            if self.closed:
                logger.info("Editor session %s closed during upload; discarding result", self.session_id)
                raise KeyError("not_found")

            refs = assemble_image_refs(snapshot, reconciliation)
            payload = build_product_payload(self.category, self.form, refs)
            saved = (save or catalog.save_product)(self.category, payload, self.product_id)
            saved_ok = True
        finally:
            with self._lock:
                self.busy = False
                self.images.frozen = False
                self.touch()
                # no edit may land between a successful save and the close
                if saved_ok:
                    self.closed = True

        product_id = self.product_id
        if isinstance(saved, dict):
            product_id = product_id or saved.get("_id") or saved.get("id")
        logger.info(
            "Saved %s product %s with %d images (%d uploaded, %d dropped)",
            self.category, product_id, len(refs), reconciliation.uploaded, reconciliation.dropped,
        )
        self.images.clear()
        return SubmitResponse(
            product_id=str(product_id) if product_id is not None else None,
            mode=self.mode,
            images=refs,
            uploaded=reconciliation.uploaded,
            dropped=reconciliation.dropped,
        )


def open_add_session(category: str, registry: Optional[PreviewRegistry] = None) -> EditSession:
    return EditSession(category, "add", registry=registry)


def open_edit_session(
    category: str,
    product_id: str,
    load: Optional[Callable[[str, str], Dict[str, Any]]] = None,
    registry: Optional[PreviewRegistry] = None,
) -> EditSession:
    """Load the product and seed the slots with its stored images, in order."""
    product = (load or catalog.get_product)(category, product_id)
    session = EditSession(
        category,
        "edit",
        product_id=str(product.get("_id") or product_id),
        form=form_from_product(product),
        registry=registry,
    )
    refs = [ref if isinstance(ref, str) else str(ref) for ref in (product.get("images") or []) if ref is not None]
    session.images.from_existing(refs)
    return session


class SessionStore:
    """In-memory table of open editor sessions.

    Sessions left idle longer than `ttl` seconds (default `settings.session_ttl`)
    are closed and dropped the next time the store is used, which releases
    the file bytes they still hold. Busy sessions never expire.
    """

    def __init__(self, ttl: Optional[float] = None) -> None:
        self._sessions: Dict[str, EditSession] = {}
        self._lock = threading.Lock()
        self._ttl = ttl

    def _expire_idle(self) -> None:
        ttl = self._ttl if self._ttl is not None else settings.session_ttl
        if not ttl or ttl <= 0:
            return
        now = time.monotonic()
        with self._lock:
            stale = [
                sid for sid, s in self._sessions.items()
                if not s.busy and now - s.last_touched > ttl
            ]
            expired = [self._sessions.pop(sid) for sid in stale]
        for session in expired:
            logger.info("Editor session %s idle for more than %ss; closing it", session.session_id, ttl)
            session.close()

    def add(self, session: EditSession) -> EditSession:
        self._expire_idle()
        with self._lock:
            self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> EditSession:
        self._expire_idle()
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise KeyError("not_found")
        session.touch()
        return session

    def close(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise KeyError("not_found")
        session.close()

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


sessions = SessionStore()
