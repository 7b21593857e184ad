"""
Tests for migration.folder_replicator

Tests sequential folder creation and id remapping
"""

import unittest
from unittest.mock import MagicMock

import requests

from migration.errors import FolderCreateError
from migration.folder_replicator import FolderReplicator
from migration.folder_tree import build_folder_order
from migration.models import AssetFolder
from storyblok_rest import ApiResponse


class TestFolderReplicator(unittest.TestCase):

    def setUp(self):
        """Set up a client that hands out ids 100, 101, ..."""
        self.client = MagicMock()
        self.next_id = 100

        def create(path, body):
            new_id = self.next_id
            self.next_id += 1
            return ApiResponse(data={"asset_folder": {"id": new_id, **body["asset_folder"]}}, status=200)

        self.client.post.side_effect = create

        self.folders = [
            AssetFolder.from_api({"id": 1, "parent_id": 0, "name": "root", "uuid": "u1", "parent_uuid": None}),
            AssetFolder.from_api({"id": 2, "parent_id": 1, "name": "A", "uuid": "u2", "parent_uuid": "u1"}),
            AssetFolder.from_api({"id": 3, "parent_id": 2, "name": "B", "uuid": "u3", "parent_uuid": "u2"}),
        ]

    def test_mapping_is_total(self):
        """Test that every source folder id gets a target id"""
        replicator = FolderReplicator(self.client, "222")

        mapping = replicator.replicate(build_folder_order(self.folders))

        self.assertEqual(mapping, {0: 0, 1: 100, 2: 101, 3: 102})

    def test_parent_ids_are_remapped(self):
        """Test that payloads reference the new parent ids without source identity"""
        replicator = FolderReplicator(self.client, "222")

        replicator.replicate(build_folder_order(self.folders))

        bodies = [c.args[1]["asset_folder"] for c in self.client.post.call_args_list]
        self.assertEqual(
            bodies,
            [
                {"name": "root", "parent_id": 0},
                {"name": "A", "parent_id": 100},
                {"name": "B", "parent_id": 101},
            ],
        )
        for c in self.client.post.call_args_list:
            self.assertEqual(c.args[0], "spaces/222/asset_folders/")

    def test_progress_callback(self):
        """Test that progress is reported after each folder"""
        progress = MagicMock()
        replicator = FolderReplicator(self.client, "222", on_progress=progress)

        replicator.replicate(build_folder_order(self.folders))

        self.assertEqual([c.args for c in progress.call_args_list], [(1, 3), (2, 3), (3, 3)])

    def test_failure_aborts(self):
        """Test that the first failed creation stops the replication"""
        response = MagicMock(status_code=422)
        self.client.post.side_effect = [
            ApiResponse(data={"asset_folder": {"id": 100}}, status=200),
            requests.HTTPError(response=response),
        ]
        replicator = FolderReplicator(self.client, "222")

        with self.assertRaises(FolderCreateError):
            replicator.replicate(build_folder_order(self.folders))

        self.assertEqual(self.client.post.call_count, 2)

    def test_child_before_parent_is_rejected(self):
        """Test that an out-of-order list is refused instead of creating a broken tree"""
        replicator = FolderReplicator(self.client, "222")

        with self.assertRaises(FolderCreateError):
            replicator.replicate(list(reversed(self.folders)))

        self.client.post.assert_not_called()

    def test_extra_attributes_are_kept(self):
        """Test that attributes other than the identity fields are sent"""
        folders = [AssetFolder.from_api({"id": 5, "parent_id": 0, "name": "x", "uuid": "u", "is_private": True})]
        replicator = FolderReplicator(self.client, "222")

        replicator.replicate(folders)

        body = self.client.post.call_args.args[1]["asset_folder"]
        self.assertEqual(body, {"is_private": True, "name": "x", "parent_id": 0})


if __name__ == "__main__":
    unittest.main()
