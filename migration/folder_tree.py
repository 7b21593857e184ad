"""
Order source asset folders so every folder precedes its descendants.
"""

from collections import defaultdict, deque
from typing import Dict, List

from logging_config import logger
from .config import ORPHANS_REATTACH, ORPHANS_SKIP
from .models import AssetFolder


def build_folder_order(
    folders: List[AssetFolder], orphan_policy: str = ORPHANS_REATTACH
) -> List[AssetFolder]:
    """
    Breadth-first ordering of a flat folder list, starting from the folders
    whose parent_id is 0.

    Folders that cannot be reached from the root (missing parent, or a parent
    cycle) are handled by orphan_policy:
    - 'reattach': for the first unreached folder in input order, its
      ancestors are followed up to the one whose parent is missing (or, in a
      cycle, to the last folder before the cycle repeats). That ancestor
      becomes a new root (its parent_id is set to 0) and the traversal
      continues from it, until every folder is placed.
    - 'skip': unreached folders are left out.

    Returns:
        The ordered list. Reattached folders are modified in place.
    """
    if orphan_policy not in (ORPHANS_REATTACH, ORPHANS_SKIP):
        raise ValueError(f"Unknown orphan policy: {orphan_policy}")

    children: Dict[int, List[AssetFolder]] = defaultdict(list)
    for folder in folders:
        children[folder.parent_id].append(folder)

    ordered: List[AssetFolder] = []
    visited = set()

    def traverse(roots: List[AssetFolder]):
        queue = deque(roots)
        while queue:
            current = queue.popleft()
            if current.id in visited:
                continue
            visited.add(current.id)
            ordered.append(current)
            queue.extend(children.get(current.id, []))

    traverse([f for f in folders if f.parent_id == 0])

    by_id = {folder.id: folder for folder in folders}

    def topmost_unreached(folder: AssetFolder) -> AssetFolder:
        # Climb through known parents; stop at a missing parent or a cycle
        seen = {folder.id}
        while folder.parent_id in by_id and folder.parent_id not in seen:
            folder = by_id[folder.parent_id]
            seen.add(folder.id)
        return folder

    for folder in folders:
        if folder.id in visited:
            continue
        if orphan_policy == ORPHANS_SKIP:
            logger.log_warning(
                f"Skipping asset folder '{folder.name}' ({folder.id}): "
                f"parent {folder.parent_id} is not reachable from the root",
                folder_id=folder.id,
            )
            continue

        top = topmost_unreached(folder)
        logger.log_warning(
            f"Asset folder '{top.name}' ({top.id}) has unreachable parent "
            f"{top.parent_id}; creating it at the root",
            folder_id=top.id,
        )
        top.parent_id = 0
        traverse([top])

    return ordered
