"""
Clone the assets of one Storyblok space into another and point the target
space's stories at the new copies.
"""

from .config import CloneSettings
from .errors import (
    MigrationError,
    SetupError,
    FetchError,
    FolderCreateError,
    AssetTransferError,
    StoryPersistError,
)
from .orchestrator import AssetCloneMigration, run_migration

__all__ = [
    "CloneSettings",
    "MigrationError",
    "SetupError",
    "FetchError",
    "FolderCreateError",
    "AssetTransferError",
    "StoryPersistError",
    "AssetCloneMigration",
    "run_migration",
]
