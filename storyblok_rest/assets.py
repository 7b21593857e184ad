"""
Asset and asset folder operations for the Storyblok REST API
"""

from typing import Any, Dict, List

from .core import ApiResponse, StoryblokClient
from .utils import list_pages


def list_asset_folders(client: StoryblokClient, space_id) -> List[Dict[str, Any]]:
    """Return every asset folder of a space as a flat list"""
    response = client.get(f"spaces/{space_id}/asset_folders")
    return response.data.get("asset_folders", [])


def create_asset_folder(
    client: StoryblokClient, space_id, folder: Dict[str, Any]
) -> Dict[str, Any]:
    """Create an asset folder and return the created folder

    Parameters:
        :folder: dict with at least 'name' and 'parent_id'
    """
    response = client.post(f"spaces/{space_id}/asset_folders/", {"asset_folder": folder})
    return response.data["asset_folder"]


def list_assets(client: StoryblokClient, space_id) -> List[Dict[str, Any]]:
    """Return every asset of a space"""
    return list_pages(client, f"spaces/{space_id}/assets", "assets", {})


def request_upload(
    client: StoryblokClient, space_id, payload: Dict[str, Any]
) -> ApiResponse:
    """Ask for a signed upload destination

    The response data holds 'post_url', the signed 'fields' that must be sent
    with the file, the new asset 'id' and its 'pretty_url'.

    Parameters:
        :payload: dict with 'filename', 'size' and 'asset_folder_id'
    """
    return client.post(f"spaces/{space_id}/assets", payload)


def finish_upload(client: StoryblokClient, space_id, asset_id) -> Dict[str, Any]:
    """Confirm a signed upload so the asset becomes durable"""
    response = client.get(f"spaces/{space_id}/assets/{asset_id}/finish_upload")
    return response.data
