"""
Save the stories whose content changed during URL replacement.
"""

import copy
from typing import Any, Dict, List, Optional, Union

import requests

from config import SIMULTANEOUS_UPLOADS
from logging_config import logger
from performance import ParallelProcessor, ProgressCounter
from storyblok_rest import StoryblokClient, update_story
from .errors import StoryPersistError
from .models import ReconcileResult, Story

# Visual editor bookkeeping that must not be written back
EDITOR_FIELD = "_editable"


def build_payload(story: Story) -> Dict[str, Any]:
    """
    Update body for a story.

    A story that was published without pending draft changes is published
    again, so it stays live with the new URLs. Any other story is saved as a
    draft only.
    """
    content = copy.deepcopy(story.content)
    if isinstance(content, dict):
        content.pop(EDITOR_FIELD, None)

    payload: Dict[str, Any] = {"story": {**story.fields, "content": content}}
    if story.published and not story.unpublished_changes:
        payload["publish"] = 1
    return payload


class StoryReconciler:
    def __init__(
        self,
        client: StoryblokClient,
        target_space_id,
        max_workers: int = SIMULTANEOUS_UPLOADS,
    ):
        self.client = client
        self.target_space_id = target_space_id
        self.max_workers = max_workers

    @staticmethod
    def changed_stories(stories: List[Story]) -> List[Story]:
        return [story for story in stories if story.has_changes]

    def _persist(self, story: Story) -> Union[bool, StoryPersistError]:
        try:
            update_story(self.client, self.target_space_id, story.id, build_payload(story))
        except requests.RequestException as e:
            error = StoryPersistError(f"Could not update story {story.id}: {e}", story.id)
            logger.log_error(error, {"story_id": story.id, "uuid": story.uuid})
            return error
        return True

    def persist(
        self, stories: List[Story], progress: Optional[ProgressCounter] = None
    ) -> ReconcileResult:
        """
        Save every changed story concurrently.

        A failed save is recorded in the result and does not stop the others.
        """
        selected = self.changed_stories(stories)
        result = ReconcileResult(selected=len(selected))
        if not selected:
            return result

        if progress is not None:
            progress.total = len(selected)

        outcomes = ParallelProcessor(self.max_workers).process_all(
            selected,
            self._persist,
            operation="save_stories",
            progress=progress,
            is_success=lambda outcome: outcome is True,
        )

        for story, outcome in zip(selected, outcomes):
            if outcome is True:
                result.updated += 1
            elif outcome is None:
                result.failed.append(StoryPersistError(f"Could not update story {story.id}", story.id))
            else:
                result.failed.append(outcome)

        logger.log_operation_end(
            "save_stories", not result.failed, updated=result.updated, failed=len(result.failed)
        )
        return result
