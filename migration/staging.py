"""
Local staging of downloaded assets before they are uploaded again.

A source URL such as
    https://a.storyblok.com/f/12345/800x600/ab12cd/photo.jpg
is staged as
    <staging root>/ab12cd/photo.jpg
"""

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

from logging_config import logger

STORYBLOK_ASSET_PREFIX = "https://a.storyblok.com/f/"


@dataclass(frozen=True)
class StagedPath:
    folder: Path
    filename: str

    @property
    def filepath(self) -> Path:
        return self.folder / self.filename


def url_segments(url: str) -> List[str]:
    """Path segments of a URL, query string removed"""
    return url.split("?")[0].split("/")


def asset_dimensions(url: str) -> str:
    """'800x600' for https://a.storyblok.com/f/<space>/800x600/<hash>/<file>, else ''"""
    parts = url.replace(STORYBLOK_ASSET_PREFIX, "").split("/")
    return parts[1] if len(parts) == 4 else ""


class StagingArea:
    """Owns the staging root and hands out one subdirectory per asset"""

    def __init__(self, root: Path):
        self.root = Path(root)

    def reset(self):
        """Wipe the staging root and recreate it empty"""
        shutil.rmtree(self.root, ignore_errors=True)
        self.root.mkdir(parents=True)

    def plan(self, urls: List[str]) -> Dict[str, StagedPath]:
        """
        Assign a staging path to every URL before any transfer starts.

        The subdirectory is the URL's parent segment and the filename its last
        segment. When a parent segment is already taken by an earlier URL, a
        numeric suffix is added (ab12cd-2, ab12cd-3, ...) so that concurrent
        transfers never share a directory.
        """
        planned: Dict[str, StagedPath] = {}
        claimed = set()

        for url in urls:
            if url in planned:
                continue
            segments = url_segments(url)
            filename = segments[-1]
            base = segments[-2] if len(segments) > 1 and segments[-2] else "_"

            directory = base
            suffix = 1
            while directory in claimed:
                suffix += 1
                directory = f"{base}-{suffix}"
            if directory != base:
                logger.log_warning(
                    f"Staging directory '{base}' already in use; staging {url} under '{directory}'",
                    url=url,
                )

            claimed.add(directory)
            planned[url] = StagedPath(folder=self.root / directory, filename=filename)

        return planned

    def prepare(self, staged: StagedPath) -> Path:
        staged.folder.mkdir(parents=True, exist_ok=True)
        return staged.filepath

    def cleanup(self, staged: StagedPath):
        """Remove a staged file and its directory"""
        shutil.rmtree(staged.folder, ignore_errors=True)
