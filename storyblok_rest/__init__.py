"""
Storyblok REST API Library

A thin client for the Storyblok management and content delivery APIs.

Usage:
    import storyblok_rest

    client = storyblok_rest.StoryblokClient(oauth_token, region="eu")
    token = storyblok_rest.get_space_token(client, space_id)

Modules:
    core: Authenticated client with get/post/put
    spaces: Space lookups
    stories: Story listing and updates
    assets: Asset folders, asset listing and the signed upload handshake
    utils: Region hosts and paging helpers
"""

from .core import ApiResponse, StoryblokClient

from .spaces import get_space_token

from .stories import list_stories, update_story

from .assets import (
    list_asset_folders,
    create_asset_folder,
    list_assets,
    request_upload,
    finish_upload,
)

from .utils import region_hosts, page_count, list_pages

# Version information
__version__ = "1.0.0"


def get_version():
    """Return the package version"""
    return __version__


__all__ = [
    # Client
    "ApiResponse",
    "StoryblokClient",
    # Spaces
    "get_space_token",
    # Stories
    "list_stories",
    "update_story",
    # Assets
    "list_asset_folders",
    "create_asset_folder",
    "list_assets",
    "request_upload",
    "finish_upload",
    # Utilities
    "region_hosts",
    "page_count",
    "list_pages",
    # Package functions
    "get_version",
]
