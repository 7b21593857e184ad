"""
Tests for migration.content_rewriter

Tests text and structural replacement of asset URLs in story content
"""

import json
import unittest

from migration.content_rewriter import ContentRewriter
from migration.models import Story


def make_story(story_id, content):
    return Story(id=story_id, uuid=f"uuid-{story_id}", content=content)


class TestTextRewrite(unittest.TestCase):

    def setUp(self):
        self.rewriter = ContentRewriter()

    def test_substitution(self):
        """Test that every occurrence of the old URL is replaced"""
        story = make_story(1, {
            "component": "page",
            "image": {"filename": "https://host/f/a.jpg"},
            "gallery": ["https://host/f/a.jpg", "http://host/f/a.jpg"],
        })
        url_map = {"//host/f/a.jpg": "https://cdn/new/a.jpg"}

        self.rewriter.rewrite([story], url_map)

        document = json.dumps(story.content)
        self.assertNotIn("host/f/a.jpg", document)
        self.assertEqual(story.content["image"]["filename"], "https://cdn/new/a.jpg")
        self.assertEqual(story.content["gallery"], ["https://cdn/new/a.jpg", "http://cdn/new/a.jpg"])

    def test_protocol_relative_references(self):
        """Test that scheme-less references stay scheme-less"""
        story = make_story(1, {"image": "//host/f/a.jpg"})

        self.rewriter.rewrite([story], {"//host/f/a.jpg": "//cdn/new/a.jpg"})

        self.assertEqual(story.content["image"], "//cdn/new/a.jpg")

    def test_failed_asset_is_removed(self):
        """Test that a failed asset's URL is replaced with the empty string"""
        story = make_story(1, {
            "image": {"filename": "https://host/f/broken.jpg"},
            "text": "see //host/f/broken.jpg here",
        })

        self.rewriter.rewrite([story], {"//host/f/broken.jpg": None})

        self.assertEqual(story.content["image"]["filename"], "")
        self.assertEqual(story.content["text"], "see  here")
        self.assertNotIn("broken.jpg", json.dumps(story.content))

    def test_urls_inside_longer_text_are_replaced(self):
        """Test that text mode also rewrites URLs embedded in rich text"""
        story = make_story(1, {"body": '<img src="https://host/f/a.jpg">'})

        self.rewriter.rewrite([story], {"//host/f/a.jpg": "https://cdn/new/a.jpg"})

        self.assertEqual(story.content["body"], '<img src="https://cdn/new/a.jpg">')

    def test_pristine_snapshot_is_untouched(self):
        """Test that rewriting only changes the working copy"""
        story = make_story(1, {"image": "https://host/f/a.jpg"})

        self.rewriter.rewrite([story], {"//host/f/a.jpg": "https://cdn/new/a.jpg"})

        self.assertEqual(story.pristine_content, {"image": "https://host/f/a.jpg"})
        self.assertTrue(story.has_changes)

    def test_unrelated_stories_are_unchanged(self):
        """Test that stories without asset references compare equal afterwards"""
        story = make_story(2, {"title": "Hello", "tags": ["a", "ä"]})

        self.rewriter.rewrite([story], {"//host/f/a.jpg": "https://cdn/new/a.jpg"})

        self.assertFalse(story.has_changes)

    def test_special_characters_in_urls(self):
        """Test URLs that need JSON escaping and non-ASCII filenames"""
        story = make_story(1, {"image": 'https://host/f/"quoted"/bild-ü.jpg'})

        self.rewriter.rewrite([story], {'//host/f/"quoted"/bild-ü.jpg': "https://cdn/x/bild-ü.jpg"})

        self.assertEqual(story.content["image"], "https://cdn/x/bild-ü.jpg")

    def test_replacement_order_is_fixed(self):
        """Test that the same input always gives the same output"""
        contents = {"a": "https://host/f/1/a.jpg", "b": "https://host/f/1/a.jpg.webp"}
        url_map = {
            "//host/f/1/a.jpg.webp": "https://cdn/2/b.webp",
            "//host/f/1/a.jpg": "https://cdn/2/a.jpg",
        }

        first = make_story(1, dict(contents))
        second = make_story(1, dict(contents))
        self.rewriter.rewrite([first], url_map)
        self.rewriter.rewrite([second], url_map)

        self.assertEqual(first.content, second.content)
        self.assertEqual(first.content, {"a": "https://cdn/2/a.jpg", "b": "https://cdn/2/b.webp"})


class TestStructuralRewrite(unittest.TestCase):

    def setUp(self):
        self.rewriter = ContentRewriter(mode="structural")

    def test_exact_values_are_replaced(self):
        """Test that leaf strings equal to a tracked URL are replaced"""
        story = make_story(1, {
            "image": {"filename": "https://host/f/a.jpg"},
            "items": [{"src": "http://host/f/a.jpg"}, {"src": "https://host/f/broken.jpg"}],
        })
        url_map = {"//host/f/a.jpg": "https://cdn/new/a.jpg", "//host/f/broken.jpg": None}

        self.rewriter.rewrite([story], url_map)

        self.assertEqual(story.content["image"]["filename"], "https://cdn/new/a.jpg")
        self.assertEqual(story.content["items"][0]["src"], "http://cdn/new/a.jpg")
        self.assertEqual(story.content["items"][1]["src"], "")

    def test_embedded_urls_are_left_alone(self):
        """Test that URLs inside longer strings are not touched"""
        body = '<img src="https://host/f/a.jpg">'
        story = make_story(1, {"body": body})

        self.rewriter.rewrite([story], {"//host/f/a.jpg": "https://cdn/new/a.jpg"})

        self.assertEqual(story.content["body"], body)
        self.assertFalse(story.has_changes)

    def test_unknown_mode(self):
        """Test that an unknown mode is rejected"""
        with self.assertRaises(ValueError):
            ContentRewriter(mode="regex")


if __name__ == "__main__":
    unittest.main()
