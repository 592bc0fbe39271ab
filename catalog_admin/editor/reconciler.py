from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Tuple
import logging
from pydantic import ValidationError
from ..core.config import settings
from ..core.errors import PartialReconciliation, UploadReconciliationFailure
from ..core.models import (
    FileIdUploadResponse,
    FilesUploadResponse,
    IdsUploadResponse,
    SingleFileUploadResponse,
    UploadBatchResponse,
)
from ..remote import catalog
from .slots import ImageSlot

logger = logging.getLogger(__name__)

# Tried in order; the first shape that validates wins.
_RESPONSE_SHAPES = (
    FilesUploadResponse,
    IdsUploadResponse,
    FileIdUploadResponse,
    SingleFileUploadResponse,
)

Uploader = Callable[[List[catalog.UploadPart]], Any]


@dataclass(frozen=True)
class Reconciliation:
    """Identifiers paired positionally with the pending slots that were sent.

    `identifiers[i]` belongs to `pending[i]`; pending slots past the end of
    `identifiers` were not resolved.
    """
    pending: Tuple[ImageSlot, ...]
    identifiers: Tuple[str, ...]

    @property
    def uploaded(self) -> int:
        return len(self.identifiers)

    @property
    def dropped(self) -> int:
        return len(self.pending) - len(self.identifiers)


def parse_upload_response(data: Any) -> Optional[UploadBatchResponse]:
    # a bare list or string stands in for the `files` member
    if isinstance(data, (list, str)):
        data = {"files": data}
    if not isinstance(data, dict):
        return None
    for shape in _RESPONSE_SHAPES:
        try:
            return shape.model_validate(data)
        except ValidationError:
            continue
    return None


def normalize_upload_response(data: Any) -> List[str]:
    """Reduce any accepted upload response to an ordered list of identifiers.

    Entries are matched to files by position, so the list stops at the first
    entry without a usable identifier: everything after it can no longer be
    trusted to line up.
    """
    parsed = parse_upload_response(data)
    if parsed is None:
        logger.warning("Unknown upload response format: %r", data)
        return []

    if isinstance(parsed, FilesUploadResponse):
        items = [it if isinstance(it, str) else it.identifier() for it in parsed.files]
    elif isinstance(parsed, IdsUploadResponse):
        items = list(parsed.ids)
    elif isinstance(parsed, FileIdUploadResponse):
        items = [parsed.file_id]
    else:
        items = [parsed.files]

    ids: List[str] = []
    for position, ident in enumerate(items):
        if not ident:
            logger.warning(
                "Upload response entry %d has no identifier; ignoring it and %d later entries",
                position, len(items) - position - 1,
            )
            break
        ids.append(ident)
    return ids


def reconcile(
    slots: Iterable[ImageSlot],
    upload: Optional[Uploader] = None,
    policy: Optional[str] = None,
) -> Reconciliation:
    """Upload every pending slot in one batch and pair the returned ids back.

    Nothing is sent when there are no pending slots. Raises
    UploadTransportFailure (from the uploader) or UploadReconciliationFailure;
    the slots themselves are never modified here.
    """
    pending = tuple(s for s in slots if s.is_pending)
    if not pending:
        return Reconciliation(pending=(), identifiers=())

    upload = upload or catalog.upload_images
    parts = [
        (s.pending_file.filename, s.pending_file.content, s.pending_file.content_type)
        for s in pending
    ]
    identifiers = normalize_upload_response(upload(parts))

    expected = len(pending)
    if not identifiers:
        raise UploadReconciliationFailure(
            "Upload did not return file ids in expected format.",
            expected=expected,
            received=0,
        )
    if len(identifiers) > expected:
        logger.warning(
            "Upload returned %d ids for %d files; ignoring the extra ids",
            len(identifiers), expected,
        )
        identifiers = identifiers[:expected]
    elif len(identifiers) < expected:
        policy = policy or settings.partial_upload_policy
        if policy == "abort":
            raise PartialReconciliation(
                f"Upload returned {len(identifiers)} ids for {expected} files.",
                expected=expected,
                received=len(identifiers),
            )
        logger.warning(
            "Upload returned %d ids for %d files; dropping the last %d new images",
            len(identifiers), expected, expected - len(identifiers),
        )

    return Reconciliation(pending=pending, identifiers=tuple(identifiers))
