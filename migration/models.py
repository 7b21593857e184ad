"""
Records passed between the migration stages.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Source-only identity fields that must not be sent when creating a folder
FOLDER_IDENTITY_FIELDS = ("id", "uuid", "parent_uuid")


def strip_scheme(url: str) -> str:
    """https://host/a.jpg -> //host/a.jpg"""
    for scheme in ("https:", "http:"):
        if url.startswith(scheme):
            return url[len(scheme):]
    return url


@dataclass
class AssetFolder:
    id: int
    parent_id: int
    name: str
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "AssetFolder":
        extra = {
            k: v
            for k, v in data.items()
            if k not in FOLDER_IDENTITY_FIELDS and k not in ("parent_id", "name")
        }
        return cls(
            id=data["id"],
            parent_id=data.get("parent_id") or 0,
            name=data.get("name", ""),
            extra=extra,
        )

    def create_payload(self, parent_id: int) -> Dict[str, Any]:
        """Folder body for the target space, without source identity"""
        return {**self.extra, "name": self.name, "parent_id": parent_id}


@dataclass
class Asset:
    source_url: str
    source_folder_id: int = 0
    new_url: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Asset":
        # Older spaces report the bucket host in front of the CDN host
        url = data["filename"].replace("s3.amazonaws.com/", "")
        return cls(source_url=url, source_folder_id=data.get("asset_folder_id") or 0)

    @property
    def match_url(self) -> str:
        """URL as searched for in story content, without its scheme"""
        return strip_scheme(self.source_url)


@dataclass
class TransferOutcome:
    source_url: str
    success: bool
    new_url: Optional[str] = None
    attempts: int = 0
    error: Optional[Exception] = None


@dataclass
class Story:
    id: int
    uuid: str
    content: Any
    published: bool = False
    unpublished_changes: bool = False
    fields: Dict[str, Any] = field(default_factory=dict)
    pristine_content: Any = None

    def __post_init__(self):
        if self.pristine_content is None:
            self.pristine_content = copy.deepcopy(self.content)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Story":
        fields = {
            k: v
            for k, v in data.items()
            if k not in ("content", "published", "unpublished_changes")
        }
        return cls(
            id=data["id"],
            uuid=data.get("uuid", ""),
            content=copy.deepcopy(data.get("content")),
            published=bool(data.get("published", False)),
            unpublished_changes=bool(data.get("unpublished_changes", False)),
            fields=fields,
        )

    @property
    def has_changes(self) -> bool:
        return self.content != self.pristine_content


@dataclass
class ReconcileResult:
    selected: int = 0
    updated: int = 0
    failed: List[Exception] = field(default_factory=list)
