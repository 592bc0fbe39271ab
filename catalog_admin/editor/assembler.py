from typing import Dict, Iterable, List
from .reconciler import Reconciliation
from .slots import ImageSlot


def assemble_image_refs(slots: Iterable[ImageSlot], reconciliation: Reconciliation) -> List[str]:
    """Final image list for the product, in slot order.

    Existing slots keep their reference verbatim. A pending slot takes the id
    returned for it in the upload it was part of, or is left out when the
    upload did not resolve it (or it was never sent).
    """
    # preview handles are unique per pending slot
    resolved: Dict[str, str] = {
        slot.preview: ident
        for slot, ident in zip(reconciliation.pending, reconciliation.identifiers)
    }
    refs: List[str] = []
    for slot in slots:
        if not slot.is_pending:
            refs.append(slot.existing_ref)
        elif slot.preview in resolved:
            refs.append(resolved[slot.preview])
    return refs
