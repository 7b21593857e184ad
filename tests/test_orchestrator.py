"""
End-to-end tests for migration.orchestrator

Runs the whole clone against an in-memory Storyblok API
"""

import shutil
import tempfile
import threading
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

import requests

from migration import AssetCloneMigration, CloneSettings
from migration.errors import FetchError, FolderCreateError, SetupError
from storyblok_rest import ApiResponse

SOURCE = "111"
TARGET = "222"
GOOD_URL = "https://s3.amazonaws.com/a.storyblok.com/f/111/640x480/aaa111/good.jpg"
BAD_URL = "https://a.storyblok.com/f/111/10x10/bbb222/bad.png"


class FakeStoryblok:
    """In-memory stand-in for the Storyblok management and delivery APIs"""

    def __init__(self):
        self.access_token = None
        self.lock = threading.Lock()
        self.folder_posts = []
        self.asset_posts = []
        self.puts = []
        self.finished = []
        self.next_folder_id = 100
        self.fail = set()

        self.folders = [
            {"id": 3, "parent_id": 2, "name": "B", "uuid": "u3", "parent_uuid": "u2"},
            {"id": 1, "parent_id": 0, "name": "root", "uuid": "u1", "parent_uuid": None},
            {"id": 2, "parent_id": 1, "name": "A", "uuid": "u2", "parent_uuid": "u1"},
        ]
        self.assets = [
            {"id": 501, "filename": GOOD_URL, "asset_folder_id": 2},
            {"id": 502, "filename": BAD_URL, "asset_folder_id": None},
        ]
        self.stories = [
            {
                "id": 10,
                "uuid": "s10",
                "name": "Home",
                "content": {
                    "_uid": "x",
                    "_editable": "<!--#storyblok#-->",
                    "component": "page",
                    "hero": {"filename": "https://a.storyblok.com/f/111/640x480/aaa111/good.jpg"},
                    "icon": {"filename": BAD_URL},
                },
            },
            {"id": 11, "uuid": "s11", "name": "About", "content": {"component": "page", "title": "About"}},
        ]
        self.management_stories = [
            {"id": 10, "uuid": "s10", "published": True, "unpublished_changes": False},
            {"id": 11, "uuid": "s11", "published": True, "unpublished_changes": True},
        ]

    def _check(self, name):
        if name in self.fail:
            raise requests.HTTPError(response=MagicMock(status_code=500))

    def get(self, path, params=None):
        self._check(path)
        if path == f"spaces/{TARGET}":
            return ApiResponse(data={"space": {"first_token": "preview"}}, status=200)
        if path == "cdn/stories":
            assert self.access_token == "preview"
            return ApiResponse(data={"stories": self.stories}, status=200, headers={"total": "2"})
        if path == f"spaces/{TARGET}/stories":
            return ApiResponse(data={"stories": self.management_stories}, status=200, headers={"total": "2"})
        if path == f"spaces/{SOURCE}/asset_folders":
            return ApiResponse(data={"asset_folders": self.folders}, status=200)
        if path == f"spaces/{SOURCE}/assets":
            return ApiResponse(data={"assets": self.assets}, status=200, headers={"total": "2"})
        if path.endswith("/finish_upload"):
            with self.lock:
                self.finished.append(path)
            return ApiResponse(data={}, status=200)
        raise AssertionError(f"unexpected GET {path}")

    def post(self, path, body):
        if path == f"spaces/{TARGET}/asset_folders/":
            self._check("folders")
            folder = body["asset_folder"]
            self.folder_posts.append(folder)
            new_id = self.next_folder_id
            self.next_folder_id += 1
            return ApiResponse(data={"asset_folder": {**folder, "id": new_id}}, status=200)
        if path == f"spaces/{TARGET}/assets":
            with self.lock:
                self.asset_posts.append(body)
            if body["filename"] == "bad.png":
                raise requests.HTTPError(response=MagicMock(status_code=422))
            return ApiResponse(
                data={
                    "id": 900,
                    "post_url": "https://s3.amazonaws.com/a.storyblok.com",
                    "fields": {"key": "f/222/640x480/ccc333/good.jpg"},
                    "pretty_url": "//a.storyblok.com/f/222/640x480/ccc333/good.jpg",
                },
                status=200,
            )
        raise AssertionError(f"unexpected POST {path}")

    def put(self, path, body):
        with self.lock:
            self.puts.append((path, body))
        return ApiResponse(data={"story": body["story"]}, status=200)


class TestAssetCloneMigration(unittest.TestCase):

    def setUp(self):
        """Set up the fake API, a download session and settings"""
        self.temp_dir = tempfile.mkdtemp()
        self.api = FakeStoryblok()
        self.session = MagicMock()
        self.session.get.return_value.iter_content.return_value = [b"bytes"]
        self.settings = CloneSettings(
            oauth_token="oauth",
            source_space_id=SOURCE,
            target_space_id=TARGET,
            simultaneous_uploads=2,
            staging_dir=Path(self.temp_dir) / "temp",
        )

    def tearDown(self):
        """Clean up temporary files"""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def migration(self, **kwargs):
        return AssetCloneMigration(self.settings, client=self.api, session=self.session, **kwargs)

    def test_end_to_end(self):
        """Test folders, transfers and the single resulting story update"""
        summary = self.migration().run()

        # Folders are created root first, each with its new parent id
        self.assertEqual(
            self.api.folder_posts,
            [
                {"name": "root", "parent_id": 0},
                {"name": "A", "parent_id": 100},
                {"name": "B", "parent_id": 101},
            ],
        )

        # One upload destination request per asset
        self.assertEqual(len(self.api.asset_posts), 2)
        by_name = {p["filename"]: p for p in self.api.asset_posts}
        self.assertEqual(by_name["good.jpg"]["asset_folder_id"], 101)
        self.assertEqual(by_name["good.jpg"]["size"], "640x480")
        self.assertEqual(by_name["bad.png"]["asset_folder_id"], 0)
        self.assertEqual(self.api.finished, [f"spaces/{TARGET}/assets/900/finish_upload"])

        # Only the story that referenced the assets is saved
        self.assertEqual(len(self.api.puts), 1)
        path, payload = self.api.puts[0]
        self.assertEqual(path, f"spaces/{TARGET}/stories/10")
        content = payload["story"]["content"]
        self.assertEqual(content["hero"]["filename"], "https://a.storyblok.com/f/222/640x480/ccc333/good.jpg")
        self.assertEqual(content["icon"]["filename"], "")
        self.assertNotIn("_editable", content)
        self.assertEqual(payload["publish"], 1)

        self.assertEqual(
            summary,
            {
                "folders": 3,
                "assets": {"total": 2, "transferred": 1, "failed": 1},
                "stories": {"total": 2, "changed": 1, "updated": 1, "failed": 0},
            },
        )

        # Staging is empty again
        self.assertEqual(list(self.settings.staging_dir.iterdir()), [])

    def test_step_callbacks(self):
        """Test that all seven steps are announced and completed in order"""
        on_step = MagicMock()
        on_step_end = MagicMock()

        self.migration(on_step=on_step, on_step_end=on_step_end).run()

        self.assertEqual([c.args[0] for c in on_step.call_args_list], [1, 2, 3, 4, 5, 6, 7])
        self.assertEqual([c.args[0] for c in on_step_end.call_args_list], [1, 2, 3, 4, 5, 6, 7])

    def test_setup_error(self):
        """Test that an unreadable target space aborts before anything else"""
        self.api.fail.add(f"spaces/{TARGET}")

        with self.assertRaises(SetupError):
            self.migration().run()

        self.assertEqual(self.api.folder_posts, [])

    def test_staging_path_is_a_file(self):
        """Test that an unusable staging directory is a setup error"""
        self.settings.staging_dir.write_text("not a directory")

        with self.assertRaises(SetupError) as ctx:
            self.migration().run()

        self.assertIn("staging directory", str(ctx.exception))
        self.assertIsNone(self.api.access_token)
        self.assertEqual(self.api.folder_posts, [])

    def test_story_fetch_error(self):
        """Test that a failed story fetch aborts the run"""
        self.api.fail.add("cdn/stories")

        with self.assertRaises(FetchError):
            self.migration().run()

        self.assertEqual(self.api.folder_posts, [])

    def test_folder_error_aborts_before_assets(self):
        """Test that folder creation failures stop the migration"""
        self.api.fail.add("folders")

        with self.assertRaises(FolderCreateError):
            self.migration().run()

        self.assertEqual(self.api.asset_posts, [])
        self.assertEqual(self.api.puts, [])

    def test_asset_fetch_error(self):
        """Test that a failed asset listing aborts after the folders exist"""
        self.api.fail.add(f"spaces/{SOURCE}/assets")

        with self.assertRaises(FetchError):
            self.migration().run()

        self.assertEqual(len(self.api.folder_posts), 3)
        self.assertEqual(self.api.puts, [])

    def test_structural_mode(self):
        """Test the stricter rewrite mode end to end"""
        self.settings.rewrite_mode = "structural"
        self.api.stories[0]["content"]["text"] = f"see {BAD_URL}"

        self.migration().run()

        content = self.api.puts[0][1]["story"]["content"]
        self.assertEqual(content["icon"]["filename"], "")
        self.assertEqual(content["text"], f"see {BAD_URL}")


class TestCloneSettings(unittest.TestCase):

    def test_from_env(self):
        """Test reading settings from the environment"""
        env = {
            "STORYBLOK_OAUTH_TOKEN": "tok",
            "STORYBLOK_SOURCE_SPACE": "1",
            "STORYBLOK_TARGET_SPACE": "2",
            "STORYBLOK_SIMULTANEOUS_UPLOADS": "5",
            "STORYBLOK_REGION": "us",
        }
        with patch.dict("os.environ", env, clear=True):
            settings = CloneSettings.from_env(retry_delay=1.5)

        self.assertEqual(settings.oauth_token, "tok")
        self.assertEqual(settings.simultaneous_uploads, 5)
        self.assertEqual(settings.region, "us")
        self.assertEqual(settings.retry_delay, 1.5)
        self.assertEqual(settings.max_retries, 4)

    def test_invalid_width(self):
        """Test that a pool width below one is rejected"""
        with self.assertRaises(ValueError):
            CloneSettings("t", "1", "2", simultaneous_uploads=0)


if __name__ == "__main__":
    unittest.main()
