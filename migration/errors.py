"""
Error taxonomy for the asset migration.

Fatal errors (SetupError, FetchError, FolderCreateError) abort the run.
AssetTransferError and StoryPersistError are absorbed per unit and reported.
"""

from typing import Optional


class MigrationError(Exception):
    """Base class; the message is meant for the user"""


class SetupError(MigrationError):
    pass


class FetchError(MigrationError):
    pass


class FolderCreateError(MigrationError):
    pass


class AssetTransferError(MigrationError):
    """A single asset could not be transferred"""

    def __init__(
        self,
        message: str,
        source_url: str = "",
        step: Optional[str] = None,
        attempts: int = 0,
    ):
        super().__init__(message)
        self.source_url = source_url
        self.step = step
        self.attempts = attempts


class StoryPersistError(MigrationError):
    """A single story could not be saved"""

    def __init__(self, message: str, story_id=None):
        super().__init__(message)
        self.story_id = story_id
