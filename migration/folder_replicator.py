"""
Recreate the source asset folder hierarchy in the target space.
"""

from typing import Callable, Dict, List, Optional

import requests

from logging_config import logger
from storyblok_rest import StoryblokClient, create_asset_folder
from .errors import FolderCreateError
from .models import AssetFolder


class FolderReplicator:
    """
    Creates folders one at a time, in the given order, remapping each
    parent_id through the ids created so far.

    Folders must arrive parent-first (see folder_tree.build_folder_order);
    creation must stay sequential because a child needs its parent's new id.
    """

    def __init__(
        self,
        client: StoryblokClient,
        target_space_id,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ):
        self.client = client
        self.target_space_id = target_space_id
        self.on_progress = on_progress

    def replicate(self, ordered_folders: List[AssetFolder]) -> Dict[int, int]:
        """
        Returns:
            Mapping of source folder id -> target folder id, seeded with {0: 0}

        Raises:
            FolderCreateError on the first failed creation. Folders created
            before the failure stay in the target space.
        """
        id_mapping: Dict[int, int] = {0: 0}
        total = len(ordered_folders)

        logger.log_operation_start("create_asset_folders", total=total)

        for created, folder in enumerate(ordered_folders, 1):
            if folder.parent_id not in id_mapping:
                raise FolderCreateError(
                    f"Parent folder {folder.parent_id} of '{folder.name}' was not created before it"
                )

            payload = folder.create_payload(id_mapping[folder.parent_id])
            try:
                new_folder = create_asset_folder(self.client, self.target_space_id, payload)
                id_mapping[folder.id] = new_folder["id"]
            except (requests.RequestException, KeyError, TypeError, ValueError) as e:
                logger.log_error(e, {"folder": payload, "id_mapping": id_mapping})
                logger.log_operation_end("create_asset_folders", False, created=created - 1)
                raise FolderCreateError("An error occurred while creating the folders") from e

            if self.on_progress:
                self.on_progress(created, total)

        logger.log_operation_end("create_asset_folders", True, created=total)
        return id_mapping
