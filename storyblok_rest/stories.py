"""
Story operations for the Storyblok REST API

Handles listing draft stories and saving story updates
"""

from typing import Any, Dict, List

from .core import StoryblokClient
from .utils import list_pages


def list_stories(client: StoryblokClient, space_id) -> List[Dict[str, Any]]:
    """Return all draft stories of a space with their publish state

    Story content comes from the content delivery API. ``published`` and
    ``unpublished_changes`` only exist on the management listing, so they are
    copied over by uuid.

    Parameters:
        :client: client holding the space access token
        :space_id: numeric id of the space the access token belongs to
    """
    stories = list_pages(client, "cdn/stories", "stories", {"version": "draft"})
    management_stories = list_pages(
        client, f"spaces/{space_id}/stories", "stories", {"version": "draft"}
    )

    state_by_uuid = {s.get("uuid"): s for s in management_stories}
    for story in stories:
        management_story = state_by_uuid.get(story.get("uuid"))
        if management_story:
            story["published"] = management_story.get("published", False)
            story["unpublished_changes"] = management_story.get(
                "unpublished_changes", False
            )

    return stories


def update_story(
    client: StoryblokClient, space_id, story_id, payload: Dict[str, Any]
) -> Dict[str, Any]:
    """Save a story through the management API

    Parameters:
        :payload: dict with a 'story' key and an optional 'publish' flag
    """
    response = client.put(f"spaces/{space_id}/stories/{story_id}", payload)
    return response.data
