"""
Space operations for the Storyblok REST API
"""

from .core import StoryblokClient


def get_space_token(client: StoryblokClient, space_id) -> str:
    """Read a space and return its first (preview) access token

    Parameters:
        :client: management client authenticated with an OAuth token
        :space_id: numeric id of the space
    """
    response = client.get(f"spaces/{space_id}")
    return response.data["space"]["first_token"]
