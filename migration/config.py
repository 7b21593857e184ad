"""
Configuration for cloning assets from a source space into a target space.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from config import (
    DEFAULT_REGION,
    ENV_OAUTH_TOKEN,
    ENV_REGION,
    ENV_SIMULTANEOUS_UPLOADS,
    ENV_SOURCE_SPACE,
    ENV_TARGET_SPACE,
    MAX_UPLOAD_RETRIES,
    RATE_LIMIT,
    RETRY_DELAY,
    SIMULTANEOUS_UPLOADS,
    STAGING_DIR,
)

# Content rewriting modes
REWRITE_TEXT = "text"
REWRITE_STRUCTURAL = "structural"

# Folders whose parent cannot be reached from the root
ORPHANS_REATTACH = "reattach"
ORPHANS_SKIP = "skip"


@dataclass
class CloneSettings:
    oauth_token: str
    source_space_id: str
    target_space_id: str
    simultaneous_uploads: int = SIMULTANEOUS_UPLOADS
    region: str = DEFAULT_REGION
    max_retries: int = MAX_UPLOAD_RETRIES
    retry_delay: float = RETRY_DELAY
    rate_limit: Optional[float] = RATE_LIMIT
    staging_dir: Path = STAGING_DIR
    rewrite_mode: str = REWRITE_TEXT
    orphan_policy: str = ORPHANS_REATTACH

    def __post_init__(self):
        if self.simultaneous_uploads < 1:
            raise ValueError("simultaneous_uploads must be at least 1")
        if self.rewrite_mode not in (REWRITE_TEXT, REWRITE_STRUCTURAL):
            raise ValueError(f"Unknown rewrite mode: {self.rewrite_mode}")
        if self.orphan_policy not in (ORPHANS_REATTACH, ORPHANS_SKIP):
            raise ValueError(f"Unknown orphan policy: {self.orphan_policy}")
        self.staging_dir = Path(self.staging_dir)

    @classmethod
    def from_env(cls, **overrides) -> "CloneSettings":
        """Build settings from STORYBLOK_* environment variables"""
        values = {
            "oauth_token": os.getenv(ENV_OAUTH_TOKEN, ""),
            "source_space_id": os.getenv(ENV_SOURCE_SPACE, ""),
            "target_space_id": os.getenv(ENV_TARGET_SPACE, ""),
            "simultaneous_uploads": int(
                os.getenv(ENV_SIMULTANEOUS_UPLOADS, SIMULTANEOUS_UPLOADS)
            ),
            "region": os.getenv(ENV_REGION, DEFAULT_REGION),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
