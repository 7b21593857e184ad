"""
Replace source asset URLs in story content with their new URLs.

Two modes:
- text (default): the whole story collection is serialized to JSON once and
  every old URL is replaced as plain text, so URL-shaped text anywhere in the
  content is rewritten too.
- structural: only string values that are exactly a tracked URL are replaced.

URLs are matched without their scheme, so http, https and protocol-relative
references all match, and each keeps its own scheme after replacement. A
failed asset's URL, scheme included, is replaced with the empty string.
"""

import json
from typing import Any, List

from logging_config import logger
from .config import REWRITE_STRUCTURAL, REWRITE_TEXT
from .models import Story, strip_scheme

# Longest first so a failed URL is removed together with its scheme
SCHEMES = ("https:", "http:", "")


def _json_fragment(value: str) -> str:
    """A string as it appears inside a JSON document, without the quotes"""
    return json.dumps(value, ensure_ascii=False)[1:-1]


class ContentRewriter:
    def __init__(self, mode: str = REWRITE_TEXT):
        if mode not in (REWRITE_TEXT, REWRITE_STRUCTURAL):
            raise ValueError(f"Unknown rewrite mode: {mode}")
        self.mode = mode

    def rewrite(self, stories: List[Story], url_map) -> List[Story]:
        """
        Rewrite the working content of every story in place.

        url_map maps scheme-less old URLs to new URLs (None for failures) and
        must be fully settled. Pristine snapshots are not touched.
        """
        logger.log_operation_start("replace_asset_urls", mode=self.mode, urls=len(url_map))

        if self.mode == REWRITE_TEXT:
            contents = self._rewrite_text([s.content for s in stories], url_map)
        else:
            contents = [self._rewrite_node(s.content, url_map) for s in stories]

        for story, content in zip(stories, contents):
            story.content = content

        logger.log_operation_end("replace_asset_urls", True, stories=len(stories))
        return stories

    @staticmethod
    def _rewrite_text(contents: List[Any], url_map) -> List[Any]:
        document = json.dumps(contents, ensure_ascii=False)
        for old_url, new_url in url_map.items():
            if not old_url:
                continue
            if new_url:
                document = document.replace(
                    _json_fragment(old_url), _json_fragment(strip_scheme(new_url))
                )
            else:
                for scheme in SCHEMES:
                    document = document.replace(_json_fragment(scheme + old_url), "")
        return json.loads(document)

    def _rewrite_node(self, node: Any, url_map) -> Any:
        if isinstance(node, dict):
            return {key: self._rewrite_node(value, url_map) for key, value in node.items()}
        if isinstance(node, list):
            return [self._rewrite_node(item, url_map) for item in node]
        if isinstance(node, str):
            key = strip_scheme(node)
            if key in url_map:
                new_url = url_map[key]
                if not new_url:
                    return ""
                return node[: len(node) - len(key)] + strip_scheme(new_url)
        return node
