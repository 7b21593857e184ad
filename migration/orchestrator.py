"""
Main orchestrator for cloning assets between spaces.
Coordinates folder creation, asset transfer, URL replacement and story updates.
"""

from typing import Any, Callable, Dict, List, Optional

import requests

from logging_config import logger
from performance import ProgressCounter
from storyblok_rest import (
    StoryblokClient,
    get_space_token,
    list_asset_folders,
    list_assets,
    list_stories,
)
from .asset_transfer import AssetTransferWorker, AssetUrlMap, transfer_assets
from .config import CloneSettings
from .content_rewriter import ContentRewriter
from .errors import FetchError, SetupError
from .folder_replicator import FolderReplicator
from .folder_tree import build_folder_order
from .models import Asset, AssetFolder, Story
from .staging import StagingArea
from .story_reconciler import StoryReconciler

TOTAL_STEPS = 7

StepCallback = Callable[[int, str], None]
ProgressCallback = Callable[[int, int, int, str], None]


def _noop(*args):
    pass


class AssetCloneMigration:
    """
    Runs the seven migration steps in order:

    1. fetch the target space's stories
    2. fetch the source space's asset folders
    3. recreate the folders in the target space (sequential)
    4. fetch the source space's assets
    5. transfer the assets (bounded parallel)
    6. replace asset URLs in the stories
    7. save the changed stories (bounded parallel)

    Steps 1-4 and the setup abort the run with a MigrationError subclass.
    Failures in steps 5 and 7 are counted per asset/story.
    """

    def __init__(
        self,
        settings: CloneSettings,
        client: Optional[StoryblokClient] = None,
        session: Optional[requests.Session] = None,
        on_step: Optional[StepCallback] = None,
        on_step_end: Optional[StepCallback] = None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self.settings = settings
        self.client = client
        self.session = session
        self.on_step = on_step or _noop
        self.on_step_end = on_step_end or _noop
        self.on_progress = on_progress or _noop
        self.staging = StagingArea(settings.staging_dir)

        self.stories: List[Story] = []
        self.source_folders: List[AssetFolder] = []
        self.folder_id_mapping: Dict[int, int] = {0: 0}
        self.assets: List[Asset] = []
        self.url_map: AssetUrlMap = {}

    def _progress(self, step: int, label: str) -> Callable[[int, int], None]:
        return lambda current, total: self.on_progress(step, current, total, label)

    def run(self) -> Dict[str, Any]:
        """Run the whole migration and return a summary"""
        logger.log_operation_start(
            "clone_assets",
            source_space=self.settings.source_space_id,
            target_space=self.settings.target_space_id,
            simultaneous_uploads=self.settings.simultaneous_uploads,
        )

        self.prepare_staging()
        self.setup()
        self.fetch_stories()
        self.fetch_asset_folders()
        self.create_asset_folders()
        self.fetch_assets()
        self.upload_assets()
        self.replace_asset_urls()
        reconcile = self.save_stories()

        failed_assets = sum(1 for url in self.url_map.values() if url is None)
        summary = {
            "folders": len(self.folder_id_mapping) - 1,
            "assets": {
                "total": len(self.url_map),
                "transferred": len(self.url_map) - failed_assets,
                "failed": failed_assets,
            },
            "stories": {
                "total": len(self.stories),
                "changed": reconcile.selected,
                "updated": reconcile.updated,
                "failed": len(reconcile.failed),
            },
        }
        logger.log_operation_end("clone_assets", True, **summary)
        return summary

    def prepare_staging(self):
        """Empty the staging directory, creating it if needed"""
        try:
            self.staging.reset()
        except OSError as e:
            logger.log_error(e, {"operation": "prepare_staging"})
            raise SetupError(
                f"Could not prepare the staging directory {self.staging.root}. "
                "Please check that the path is a writable directory."
            ) from e

    def setup(self):
        """Resolve the target space token and configure the client"""
        try:
            if self.client is None:
                self.client = StoryblokClient(
                    self.settings.oauth_token,
                    region=self.settings.region,
                    rate_limit=self.settings.rate_limit,
                )
            self.client.access_token = get_space_token(self.client, self.settings.target_space_id)
        except (requests.RequestException, KeyError, TypeError, ValueError) as e:
            logger.log_error(e, {"operation": "setup"})
            raise SetupError(
                "Error trying to retrieve the space token. "
                "Please double check the target space id and the OAUTH token."
            ) from e

    def fetch_stories(self):
        self.on_step(1, "Fetching stories from target space.")
        try:
            raw_stories = list_stories(self.client, self.settings.target_space_id)
            self.stories = [Story.from_api(s) for s in raw_stories]
        except (requests.RequestException, KeyError, TypeError, ValueError) as e:
            logger.log_error(e, {"operation": "fetch_stories"})
            raise FetchError(
                "Error fetching the stories. Please double check the target space id."
            ) from e
        self.on_step_end(1, "Stories fetched from target space.")

    def fetch_asset_folders(self):
        self.on_step(2, "Fetching assets folders from source space.")
        try:
            raw_folders = list_asset_folders(self.client, self.settings.source_space_id)
            self.source_folders = [AssetFolder.from_api(f) for f in raw_folders]
        except (requests.RequestException, KeyError, TypeError, ValueError) as e:
            logger.log_error(e, {"operation": "fetch_asset_folders"})
            raise FetchError("Error fetching the asset folders.") from e
        self.on_step_end(2, "Fetched assets folders from source space.")

    def create_asset_folders(self):
        self.on_step(3, "Creating asset folder structure in target space.")
        ordered = build_folder_order(self.source_folders, self.settings.orphan_policy)
        replicator = FolderReplicator(
            self.client,
            self.settings.target_space_id,
            on_progress=self._progress(3, "folders created"),
        )
        self.folder_id_mapping = replicator.replicate(ordered)
        self.on_step_end(3, "Created folders in target space.")

    def fetch_assets(self):
        self.on_step(4, "Fetching assets from source space.")
        try:
            raw_assets = list_assets(self.client, self.settings.source_space_id)
            self.assets = [Asset.from_api(a) for a in raw_assets]
        except (requests.RequestException, KeyError, TypeError, ValueError) as e:
            logger.log_error(e, {"operation": "fetch_assets"})
            raise FetchError(
                "Error fetching the assets. Please double check the source space id."
            ) from e
        self.on_step_end(4, "Fetched assets from source space.")

    def upload_assets(self):
        self.on_step(5, "Uploading assets to target space.")
        worker = AssetTransferWorker(
            self.client,
            self.settings.target_space_id,
            self.staging,
            session=self.session,
            max_retries=self.settings.max_retries,
            retry_delay=self.settings.retry_delay,
        )
        progress = ProgressCounter(callback=self._progress(5, "assets uploaded"))
        self.url_map = transfer_assets(
            self.assets,
            self.folder_id_mapping,
            worker,
            self.settings.simultaneous_uploads,
            progress=progress,
        )
        self.on_step_end(5, "Uploaded assets to target space.")

    def replace_asset_urls(self):
        self.on_step(6, "Replacing asset URLs in stories.")
        ContentRewriter(self.settings.rewrite_mode).rewrite(self.stories, self.url_map)
        self.on_step_end(6, "Replaced all URLs in the stories.")

    def save_stories(self):
        self.on_step(7, "Updating stories in target space.")
        reconciler = StoryReconciler(
            self.client,
            self.settings.target_space_id,
            max_workers=self.settings.simultaneous_uploads,
        )
        progress = ProgressCounter(callback=self._progress(7, "stories updated"))
        result = reconciler.persist(self.stories, progress=progress)
        self.on_step_end(7, "Updated stories in target space.")
        return result


def run_migration(settings: CloneSettings, **kwargs) -> Dict[str, Any]:
    """Convenience wrapper: build an AssetCloneMigration and run it"""
    return AssetCloneMigration(settings, **kwargs).run()
