from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple
import threading
import uuid
from ..core.errors import SessionBusy

"""Ordered image slots for the product editor plus the preview store.

A slot is either an image the server already holds (kept by reference) or a
file selected locally that still has to be uploaded. Pending slots own a
preview handle which must be released exactly once.
"""

EXISTING = "existing"
PENDING = "pending"


@dataclass(frozen=True)
class PendingFile:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


class PreviewRegistry:
    """Holds locally selected file bytes behind opaque handles for display.

    Plays the role of a browser's object-URL table: `acquire` hands out a new
    handle, `release` frees it. Releasing an unknown handle raises KeyError.
    """

    def __init__(self) -> None:
        self._items: Dict[str, PendingFile] = {}
        self._lock = threading.Lock()

    def acquire(self, file: PendingFile) -> str:
        handle = uuid.uuid4().hex
        with self._lock:
            self._items[handle] = file
        return handle

    def release(self, handle: str) -> None:
        with self._lock:
            if handle not in self._items:
                raise KeyError("not_found")
            del self._items[handle]

    def get(self, handle: str) -> PendingFile:
        with self._lock:
            item = self._items.get(handle)
        if item is None:
            raise KeyError("not_found")
        return item

    def __contains__(self, handle: str) -> bool:
        with self._lock:
            return handle in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


previews = PreviewRegistry()


@dataclass(frozen=True)
class ImageSlot:
    kind: str
    existing_ref: Optional[str] = None
    pending_file: Optional[PendingFile] = None
    preview: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind == EXISTING:
            ok = self.existing_ref is not None and self.pending_file is None and self.preview is None
        elif self.kind == PENDING:
            ok = self.existing_ref is None and self.pending_file is not None and self.preview is not None
        else:
            ok = False
        if not ok:
            raise ValueError(f"invalid_slot kind={self.kind!r}")

    @classmethod
    def existing(cls, ref: str) -> "ImageSlot":
        return cls(kind=EXISTING, existing_ref=ref)

    @classmethod
    def pending(cls, file: PendingFile, preview: str) -> "ImageSlot":
        return cls(kind=PENDING, pending_file=file, preview=preview)

    @property
    def is_pending(self) -> bool:
        return self.kind == PENDING


class ImageSlotList:
    """The ordered images of the product being edited.

    Owned by exactly one editor session and mutated in place. Index based
    operations never raise: an index outside the list is ignored because
    indices always come from the list as last rendered. While frozen (a
    submit is uploading its snapshot) every edit raises SessionBusy; `clear`
    stays allowed so a session can be closed mid-upload.
    """

    def __init__(self, registry: Optional[PreviewRegistry] = None) -> None:
        self._slots: List[ImageSlot] = []
        self._registry = registry if registry is not None else previews
        self.frozen = False

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[ImageSlot]:
        return iter(list(self._slots))

    def __getitem__(self, index: int) -> ImageSlot:
        return self._slots[index]

    def _in_range(self, index: int) -> bool:
        return 0 <= index < len(self._slots)

    def _check_editable(self) -> None:
        if self.frozen:
            raise SessionBusy("images cannot change while a save is in progress")

    def _release(self, slot: ImageSlot) -> None:
        if slot.is_pending:
            self._registry.release(slot.preview)

    def append(self, files: Iterable[PendingFile]) -> List[ImageSlot]:
        self._check_editable()
        added = [ImageSlot.pending(f, self._registry.acquire(f)) for f in files]
        self._slots.extend(added)
        return added

    def move(self, index: int, direction: int) -> None:
        self._check_editable()
        if direction not in (-1, 1):
            return
        target = index + direction
        if not self._in_range(index) or not self._in_range(target):
            return
        self._slots[index], self._slots[target] = self._slots[target], self._slots[index]

    def remove_at(self, index: int) -> Optional[ImageSlot]:
        self._check_editable()
        if not self._in_range(index):
            return None
        slot = self._slots.pop(index)
        self._release(slot)
        return slot

    def from_existing(self, refs: Iterable[str]) -> None:
        self._check_editable()
        self.clear()
        self._slots = [ImageSlot.existing(ref) for ref in refs]

    def clear(self) -> None:
        """Empty the list, releasing every pending preview.

        All previews are released even if one of them fails; the first
        failure is raised afterwards.
        """
        slots, self._slots = self._slots, []
        error = None
        for slot in slots:
            try:
                self._release(slot)
            except KeyError as e:
                if error is None:
                    error = e
        if error is not None:
            raise error

    def pending(self) -> List[ImageSlot]:
        """Pending slots in list order; this is the upload order."""
        return [s for s in self._slots if s.is_pending]

    def snapshot(self) -> Tuple[ImageSlot, ...]:
        return tuple(self._slots)
