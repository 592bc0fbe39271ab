from typing import List
import logging
from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from fastapi.responses import Response
from ..core.errors import (
    CatalogRequestFailure,
    InvalidProductForm,
    SessionBusy,
    UploadReconciliationFailure,
    UploadTransportFailure,
)
from ..core.models import (
    OpenAddRequest,
    OpenEditRequest,
    ProductFormUpdate,
    SessionView,
    SlotView,
    SubmitResponse,
)
from ..editor.session import EditSession, open_add_session, open_edit_session, sessions
from ..editor.slots import PendingFile, previews
from ..remote import catalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/editor", tags=["editor"])


def _session_or_404(session_id: str) -> EditSession:
    try:
        return sessions.get(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="not_found")


def _edit(session: EditSession, action, *args, **kwargs) -> SessionView:
    # checked and applied under the session lock, so no edit overlaps a submit
    try:
        session.mutate(action, *args, **kwargs)
    except SessionBusy:
        raise HTTPException(status_code=409, detail="session_busy")
    except KeyError:
        raise HTTPException(status_code=404, detail="not_found")
    return _view(session)


def _view(session: EditSession) -> SessionView:
    images = []
    for index, slot in enumerate(session.images):
        if slot.is_pending:
            images.append(SlotView(
                index=index,
                kind="pending",
                filename=slot.pending_file.filename,
                preview=slot.preview,
                src=f"/editor/previews/{slot.preview}",
            ))
        else:
            images.append(SlotView(
                index=index,
                kind="existing",
                ref=slot.existing_ref,
                src=catalog.image_src(slot.existing_ref) or "",
            ))
    return SessionView(
        session_id=session.session_id,
        mode=session.mode,
        category=session.category,
        product_id=session.product_id,
        busy=session.busy,
        form=session.form,
        images=images,
    )


@router.post(
    "/sessions",
    response_model=SessionView,
    status_code=201,
    summary="Start adding a product",
    description="Opens an editor session with an empty form and no images.",
)
def open_add(body: OpenAddRequest):
    return _view(sessions.add(open_add_session(body.category)))


@router.post(
    "/sessions/edit",
    response_model=SessionView,
    status_code=201,
    summary="Start editing a product",
    description=(
        "Loads the product and opens an editor session prefilled with its fields.\n"
        "The stored images become the initial slots, in the product's order."
    ),
)
def open_edit(body: OpenEditRequest):
    try:
        session = open_edit_session(body.category, body.product_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="not_found")
    except CatalogRequestFailure as e:
        logger.warning("Loading %s/%s failed: %s", body.category, body.product_id, e)
        raise HTTPException(status_code=502, detail="Failed to fetch product")
    return _view(sessions.add(session))


@router.get("/sessions/{session_id}", response_model=SessionView, summary="Show an editor session")
def get_session(session_id: str):
    return _view(_session_or_404(session_id))


@router.patch("/sessions/{session_id}/form", response_model=SessionView, summary="Update form fields")
def update_form(session_id: str, body: ProductFormUpdate):
    session = _session_or_404(session_id)
    return _edit(session, session.update_form, **body.model_dump(exclude_unset=True))


@router.post(
    "/sessions/{session_id}/images",
    response_model=SessionView,
    summary="Add local images",
    description=(
        "Appends one pending slot per uploaded file, in the order given.\n"
        "Nothing is sent to the catalog until the session is submitted."
    ),
)
async def add_images(session_id: str, files: List[UploadFile] = File(...)):
    session = _session_or_404(session_id)
    pending = []
    for f in files:
        pending.append(PendingFile(
            filename=f.filename or "image",
            content=await f.read(),
            content_type=f.content_type or "application/octet-stream",
        ))
    return _edit(session, session.images.append, pending)


@router.post(
    "/sessions/{session_id}/images/{index}/move",
    response_model=SessionView,
    summary="Move an image left or right",
    description="Swaps the image with its neighbour. Moving past either end does nothing.",
)
def move_image(session_id: str, index: int, direction: int = Query(..., ge=-1, le=1)):
    session = _session_or_404(session_id)
    return _edit(session, session.images.move, index, direction)


@router.delete(
    "/sessions/{session_id}/images/{index}",
    response_model=SessionView,
    summary="Remove an image",
    description="Removes the slot at `index`; an index outside the list is ignored.",
)
def remove_image(session_id: str, index: int):
    session = _session_or_404(session_id)
    return _edit(session, session.images.remove_at, index)


@router.get("/previews/{handle}", summary="Preview a pending image")
def get_preview(handle: str):
    try:
        item = previews.get(handle)
    except KeyError:
        raise HTTPException(status_code=404, detail="not_found")
    return Response(content=item.content, media_type=item.content_type)


@router.post(
    "/sessions/{session_id}/submit",
    response_model=SubmitResponse,
    summary="Save the product",
    description=(
        "Uploads the pending images in one batch, rebuilds the image list in slot\n"
        "order and saves the product. If the upload fails nothing is saved and the\n"
        "session stays open for a retry. On success the session is closed."
    ),
)
def submit(session_id: str):
    session = _session_or_404(session_id)
    try:
        result = session.submit()
    except SessionBusy:
        raise HTTPException(status_code=409, detail="session_busy")
    except InvalidProductForm as e:
        raise HTTPException(status_code=400, detail=f"{e.code}: {e.message}")
    except (UploadTransportFailure, UploadReconciliationFailure) as e:
        logger.warning("Upload for session %s failed: %s", session_id, e.to_dict())
        raise HTTPException(status_code=502, detail=f"{e.code}: {e.message}")
    except KeyError:
        raise HTTPException(status_code=404, detail="not_found")
    except CatalogRequestFailure as e:
        logger.warning("Saving session %s failed: %s", session_id, e.to_dict())
        raise HTTPException(status_code=502, detail="Failed to save product or upload images")
    sessions.discard(session_id)
    return result


@router.delete(
    "/sessions/{session_id}",
    summary="Close an editor session",
    description="Discards the session and its unsaved images. An in-flight upload is not cancelled; its result is thrown away.",
)
def close_session(session_id: str):
    try:
        sessions.close(session_id)
        return {"closed": session_id}
    except KeyError:
        raise HTTPException(status_code=404, detail="not_found")
