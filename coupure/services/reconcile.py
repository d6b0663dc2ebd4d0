# coupure/services/reconcile.py
from typing import List, Sequence

from coupure.schemas import Report


def reconcile(local: Sequence[Report], remote: Sequence[Report]) -> List[Report]:
    """
    Fusion local/distant, sans I/O :
      - local avec un id connu à distance -> remplacé par la version distante (synced=True) ;
      - distant sans équivalent local -> ajouté en fin, déjà synced ;
      - local sans équivalent distant -> laissé tel quel (non synchronisé ou supprimé à distance).
    L'ordre local est conservé.
    """
    by_id = {r.id: r for r in remote}
    local_ids = {r.id for r in local}

    merged: List[Report] = []
    for r in local:
        server = by_id.get(r.id)
        merged.append(server.model_copy(update={"synced": True}) if server is not None else r)

    # un même id peut revenir deux fois dans la page distante
    seen = set(local_ids)
    for r in remote:
        if r.id in seen:
            continue
        seen.add(r.id)
        merged.append(r.model_copy(update={"synced": True}))
    return merged
