"""
Download every source asset and upload it again into the target space.

Per asset: download to staging -> request a signed upload destination ->
post the file to it -> finish the upload -> remove the staging directory.
Assets are processed by a bounded thread pool; the stage returns only when
every asset has settled.
"""

import time
from typing import Any, Dict, List, Optional, Tuple

import requests

from config import DOWNLOAD_CHUNK_SIZE, DOWNLOAD_TIMEOUT, MAX_UPLOAD_RETRIES, RETRY_DELAY
from logging_config import logger
from performance import ParallelProcessor, ProgressCounter
from storyblok_rest import StoryblokClient, finish_upload, request_upload
from .errors import AssetTransferError
from .models import Asset, TransferOutcome
from .staging import StagedPath, StagingArea, asset_dimensions

# old URL without scheme -> new URL, or None when the transfer failed
AssetUrlMap = Dict[str, Optional[str]]


def is_retryable(error: Exception) -> bool:
    """Timeouts and HTTP 429 responses may succeed on another attempt"""
    if isinstance(error, requests.Timeout):
        return True
    if isinstance(error, requests.HTTPError) and error.response is not None:
        return error.response.status_code == 429
    return False


def target_folder_for(asset: Asset, id_mapping: Dict[int, int]) -> int:
    return id_mapping.get(asset.source_folder_id or 0, 0)


class AssetTransferWorker:
    """Transfers one asset at a time; safe to share between pool threads"""

    def __init__(
        self,
        client: StoryblokClient,
        target_space_id,
        staging: StagingArea,
        session: Optional[requests.Session] = None,
        max_retries: int = MAX_UPLOAD_RETRIES,
        retry_delay: float = RETRY_DELAY,
        download_timeout: float = DOWNLOAD_TIMEOUT,
    ):
        self.client = client
        self.target_space_id = target_space_id
        self.staging = staging
        self.session = session or requests.Session()
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.download_timeout = download_timeout

    def transfer(self, asset: Asset, target_folder_id: int, staged: StagedPath) -> TransferOutcome:
        """
        Move one asset into target_folder_id of the target space.

        Never raises for transfer problems: the failure is returned in the
        outcome. The staging directory is removed in every case.
        """
        attempts = 0
        try:
            filepath = self.staging.prepare(staged)
            self._download(asset.source_url, filepath)

            signed, attempts = self._request_destination(asset, target_folder_id, staged.filename)
            self._upload(asset, signed, filepath, staged.filename)
            self._finalize(asset, signed)

            new_url = signed.get("pretty_url")
            if not new_url:
                raise AssetTransferError(
                    "Upload destination did not include a public URL",
                    asset.source_url,
                    step="request_upload",
                )
        except AssetTransferError as e:
            logger.log_error(e, {"asset": asset.source_url, "step": e.step})
            return TransferOutcome(
                source_url=asset.source_url,
                success=False,
                attempts=max(attempts, e.attempts),
                error=e,
            )
        except OSError as e:
            error = AssetTransferError(f"Staging failed: {e}", asset.source_url, step="staging")
            logger.log_error(error, {"asset": asset.source_url})
            return TransferOutcome(asset.source_url, False, attempts=attempts, error=error)
        finally:
            self.staging.cleanup(staged)

        return TransferOutcome(asset.source_url, True, new_url=new_url, attempts=attempts)

    def _download(self, url: str, filepath):
        try:
            response = self.session.get(url, stream=True, timeout=self.download_timeout)
            response.raise_for_status()
            with open(filepath, "wb") as f:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
        except requests.RequestException as e:
            raise AssetTransferError(f"Download failed: {e}", url, step="download") from e

    def _request_destination(
        self, asset: Asset, target_folder_id: int, filename: str
    ) -> Tuple[Dict[str, Any], int]:
        """
        Ask the target space for a signed upload destination.

        Timeouts and 429s are retried up to max_retries times; the attempt
        number travels with the loop. Returns (signed response, attempts).
        """
        payload = {
            "filename": filename,
            "size": asset_dimensions(asset.source_url),
            "asset_folder_id": target_folder_id,
        }

        attempt = 0
        while True:
            attempt += 1
            try:
                response = request_upload(self.client, self.target_space_id, payload)
            except requests.RequestException as e:
                if is_retryable(e) and attempt <= self.max_retries:
                    logger.log_warning(
                        f"Upload destination for {asset.source_url} failed on attempt {attempt}, retrying",
                        asset=asset.source_url,
                        attempt=attempt,
                    )
                    if self.retry_delay:
                        time.sleep(self.retry_delay)
                    continue
                raise AssetTransferError(
                    f"Upload destination request failed after {attempt} attempt(s): {e}",
                    asset.source_url,
                    step="request_upload",
                    attempts=attempt,
                ) from e

            if response.status != 200:
                raise AssetTransferError(
                    f"Upload destination request returned {response.status}",
                    asset.source_url,
                    step="request_upload",
                    attempts=attempt,
                )
            return response.data, attempt

    def _upload(self, asset: Asset, signed: Dict[str, Any], filepath, filename: str):
        try:
            with open(filepath, "rb") as f:
                # The signed fields must precede the file in the multipart body
                response = self.session.post(
                    signed["post_url"],
                    data=signed.get("fields", {}),
                    files={"file": (filename, f)},
                    timeout=self.download_timeout,
                )
            response.raise_for_status()
        except (requests.RequestException, KeyError) as e:
            raise AssetTransferError(f"Upload failed: {e}", asset.source_url, step="upload") from e

    def _finalize(self, asset: Asset, signed: Dict[str, Any]):
        try:
            finish_upload(self.client, self.target_space_id, signed["id"])
        except (requests.RequestException, KeyError) as e:
            raise AssetTransferError(
                f"Finishing the upload failed: {e}", asset.source_url, step="finish_upload"
            ) from e


def transfer_assets(
    assets: List[Asset],
    id_mapping: Dict[int, int],
    worker: AssetTransferWorker,
    max_workers: int,
    progress: Optional[ProgressCounter] = None,
) -> AssetUrlMap:
    """
    Transfer all assets with at most max_workers in flight.

    Outcomes are merged into the Asset records (new_url, or '' on failure)
    and into the returned map only after every transfer has settled. The
    map follows the order of assets.
    """
    unique: Dict[str, Asset] = {}
    for asset in assets:
        if asset.source_url in unique:
            logger.log_warning(f"Duplicate asset {asset.source_url} transferred once", url=asset.source_url)
            continue
        unique[asset.source_url] = asset
    to_transfer = list(unique.values())

    staged_paths = worker.staging.plan([a.source_url for a in to_transfer])

    def run(asset: Asset) -> TransferOutcome:
        return worker.transfer(
            asset, target_folder_for(asset, id_mapping), staged_paths[asset.source_url]
        )

    if progress is not None:
        progress.total = len(to_transfer)

    outcomes = ParallelProcessor(max_workers).process_all(
        to_transfer,
        run,
        operation="upload_assets",
        progress=progress,
        is_success=lambda outcome: outcome.success,
    )

    new_urls: Dict[str, Optional[str]] = {}
    for asset, outcome in zip(to_transfer, outcomes):
        succeeded = outcome is not None and outcome.success
        new_urls[asset.source_url] = outcome.new_url if succeeded else None

    url_map: AssetUrlMap = {}
    for asset in assets:
        new_url = new_urls[asset.source_url]
        asset.new_url = new_url or ""
        url_map[asset.match_url] = new_url

    failed = sum(1 for url in new_urls.values() if url is None)
    logger.log_operation_end(
        "transfer_assets", failed == 0, transferred=len(new_urls) - failed, failed=failed
    )
    return url_map
