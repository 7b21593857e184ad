"""
Utility functions for the Storyblok REST API

Handles region hosts and paged listings
"""

import math
from typing import Any, Dict, List, Tuple

from config import PER_PAGE

# region -> (management host, content delivery host)
REGION_HOSTS: Dict[str, Tuple[str, str]] = {
    "eu": ("mapi.storyblok.com", "api.storyblok.com"),
    "us": ("api-us.storyblok.com", "api-us.storyblok.com"),
    "ap": ("api-ap.storyblok.com", "api-ap.storyblok.com"),
    "ca": ("api-ca.storyblok.com", "api-ca.storyblok.com"),
    "cn": ("app.storyblokchina.cn", "app.storyblokchina.cn"),
}


def region_hosts(region: str) -> Tuple[str, str]:
    """Return the (management, delivery) hosts for a region"""
    try:
        return REGION_HOSTS[(region or "eu").lower()]
    except KeyError:
        raise ValueError(f"Unknown Storyblok region: {region}") from None


def page_count(total: int, per_page: int = PER_PAGE) -> int:
    """Number of pages needed for total items, at least one"""
    return max(1, math.ceil(int(total or 0) / per_page))


def list_pages(client, path: str, key: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Collect every page of a paged listing using the 'total' header

    Parameters:
        :client: StoryblokClient
        :path: API path of the listing
        :key: response key holding the items ('stories', 'assets', ...)
        :params: extra query parameters
    """
    first = client.get(path, {**params, "per_page": PER_PAGE, "page": 1})
    items = list(first.data.get(key, []))

    for page in range(2, page_count(first.total, PER_PAGE) + 1):
        response = client.get(path, {**params, "per_page": PER_PAGE, "page": page})
        items.extend(response.data.get(key, []))

    return items
