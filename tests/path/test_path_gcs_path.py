import unittest

from gcsnav.errors import InvalidArgumentError
from gcsnav.models import FolderPrefix, StorageObject
from gcsnav.path import GcsPath, GcsPathType


class TestGcsPathParse(unittest.TestCase):
    def test_empty_is_drive(self) -> None:
        for value in ("", None):
            path = GcsPath.parse(value)
            self.assertEqual(path.path_type, GcsPathType.DRIVE)
            self.assertIsNone(path.bucket)
            self.assertIsNone(path.object_path)

    def test_no_separator_is_bucket(self) -> None:
        path = GcsPath.parse("my-bucket")
        self.assertEqual(path.path_type, GcsPathType.BUCKET)
        self.assertEqual(path.bucket, "my-bucket")
        self.assertIsNone(path.object_path)

    def test_trailing_separator_only_is_bucket(self) -> None:
        path = GcsPath.parse("my-bucket/")
        self.assertEqual(path.path_type, GcsPathType.BUCKET)
        self.assertEqual(path.object_path, "")

    def test_object_round_trip(self) -> None:
        for bucket, key in (("b", "k"), ("bucket-1", "a/b/c.txt"), ("b", "folder/"), ("b", "x y")):
            path = GcsPath.parse(bucket + "/" + key)
            self.assertEqual(path.bucket, bucket)
            self.assertEqual(path.object_path, key)
            self.assertEqual(path.path_type, GcsPathType.OBJECT)
            self.assertEqual(str(path), bucket + "/" + key)

    def test_backslashes_are_normalized(self) -> None:
        path = GcsPath.parse("b\\a\\b.txt")
        self.assertEqual(path.bucket, "b")
        self.assertEqual(path.object_path, "a/b.txt")

    def test_splits_on_first_separator_of_either_kind(self) -> None:
        path = GcsPath.parse("b/a\\c")
        self.assertEqual(path.bucket, "b")
        self.assertEqual(path.object_path, "a/c")

    def test_from_item(self) -> None:
        path = GcsPath.from_item(StorageObject(bucket="b", name="a/x"))
        self.assertEqual(str(path), "b/a/x")

        folder = GcsPath.from_item(FolderPrefix(bucket="b", name="a"))
        self.assertEqual(folder.object_path, "a/")


class TestGcsPathRelative(unittest.TestCase):
    def test_relative_path_to_child(self) -> None:
        path = GcsPath.parse("b/src/")
        self.assertEqual(path.relative_path_to_child("src/sub/y.txt"), "sub/y.txt")

    def test_relative_path_from_bucket(self) -> None:
        path = GcsPath.parse("b")
        self.assertEqual(path.relative_path_to_child("a/b"), "a/b")

    def test_relative_path_rejects_non_child(self) -> None:
        path = GcsPath.parse("b/src/")
        with self.assertRaises(InvalidArgumentError):
            path.relative_path_to_child("other/x")


if __name__ == "__main__":
    unittest.main()
