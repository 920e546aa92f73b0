import os
import tempfile
import unittest

from fakes import FakeProjects, FakeStorage, active

from gcsnav.config import ProviderSettings
from gcsnav.errors import (
    ConflictError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
)
from gcsnav.models import BucketInfo, DriveInfo, FolderPrefix, StorageObject
from gcsnav.provider import (
    CopyOptions,
    GoogleCloudStorageProvider,
    NewBucketOptions,
    NewObjectOptions,
    ProviderHost,
)


def _provider(storage, projects=None, **kwargs) -> GoogleCloudStorageProvider:
    return GoogleCloudStorageProvider.from_controllers(
        storage,
        projects or FakeProjects([active("p1")]),
        **kwargs,
    )


class TestProviderQueries(unittest.TestCase):
    def setUp(self) -> None:
        self.storage = FakeStorage()
        self.storage.put("b", "a/b.txt")
        self.storage.put("b", "a/c/d.txt")
        self.storage.put("b", "top.txt")
        self.provider = _provider(self.storage)

    def test_drive_always_exists_and_is_container(self) -> None:
        self.assertTrue(self.provider.item_exists(""))
        self.assertTrue(self.provider.is_item_container(""))
        self.assertTrue(self.provider.has_child_items(""))
        self.assertEqual(self.storage.calls, [])

    def test_bucket_exists_via_point_get(self) -> None:
        self.assertTrue(self.provider.item_exists("b"))
        self.assertFalse(self.provider.item_exists("nope"))
        self.assertEqual(self.storage.count("get_bucket"), 2)

    def test_bucket_is_container(self) -> None:
        self.assertTrue(self.provider.is_item_container("b"))
        self.assertTrue(self.provider.has_child_items("b"))

    def test_object_queries_use_the_model(self) -> None:
        self.assertTrue(self.provider.item_exists("b/a/b.txt"))
        self.assertTrue(self.provider.item_exists("b/a"))
        self.assertTrue(self.provider.item_exists("b\\a\\c\\d.txt"))
        self.assertFalse(self.provider.item_exists("b/zzz"))
        self.assertTrue(self.provider.is_item_container("b/a/c"))
        self.assertFalse(self.provider.is_item_container("b/top.txt"))
        self.assertTrue(self.provider.has_child_items("b/a"))
        self.assertEqual(self.storage.count("list_objects"), 1)
        self.assertEqual(self.storage.count("get_object"), 0)

    def test_get_item_drive(self) -> None:
        item = self.provider.get_item("")
        self.assertIsInstance(item.item, DriveInfo)
        self.assertEqual(item.item.name, "gs")
        self.assertTrue(item.is_container)

    def test_get_item_bucket(self) -> None:
        item = self.provider.get_item("b")
        self.assertIsInstance(item.item, BucketInfo)
        self.assertTrue(item.is_container)

    def test_queries_in_missing_bucket_are_false(self) -> None:
        self.assertFalse(self.provider.item_exists("nosuchbucket/x.txt"))
        self.assertFalse(self.provider.is_item_container("nosuchbucket/x"))
        self.assertFalse(self.provider.has_child_items("nosuchbucket/x"))

    def test_get_item_missing_bucket_raises(self) -> None:
        with self.assertRaises(NotFoundError):
            self.provider.get_item("nope")

    def test_get_item_object_and_folder(self) -> None:
        item = self.provider.get_item("b/top.txt")
        self.assertIsInstance(item.item, StorageObject)
        self.assertFalse(item.is_container)

        folder = self.provider.get_item("b/a")
        self.assertIsInstance(folder.item, FolderPrefix)
        self.assertEqual(folder.item.content_type, "Folder")
        self.assertTrue(folder.is_container)

    def test_get_item_missing_object_raises(self) -> None:
        with self.assertRaises(NotFoundError):
            self.provider.get_item("b/missing")

    def test_closed_provider_rejects_calls(self) -> None:
        with self.provider:
            pass
        with self.assertRaises(InvalidStateError):
            self.provider.item_exists("b")


class TestProviderListing(unittest.TestCase):
    def setUp(self) -> None:
        self.storage = FakeStorage()
        for name in ("a/", "a/x.txt", "a/s/y.txt", "top.txt"):
            self.storage.put("b", name)
        self.provider = _provider(self.storage)

    def test_children_skip_the_folder_marker(self) -> None:
        items = list(self.provider.get_child_items("b/a"))

        paths = [i.path for i in items]
        self.assertEqual(sorted(paths), ["b/a/s/", "b/a/x.txt"])
        by_path = {i.path: i for i in items}
        self.assertIsInstance(by_path["b/a/s/"].item, FolderPrefix)
        self.assertTrue(by_path["b/a/s/"].is_container)
        self.assertFalse(by_path["b/a/x.txt"].is_container)

        call = [c for c in self.storage.calls if c[0] == "list_objects"][-1]
        self.assertEqual(call[2], "a/")
        self.assertEqual(call[3], "/")

    def test_recursive_children_of_bucket(self) -> None:
        items = list(self.provider.get_child_items("b", recurse=True))
        self.assertEqual(
            sorted(i.path for i in items),
            ["b/a/", "b/a/s/y.txt", "b/a/x.txt", "b/top.txt"],
        )
        self.assertTrue(all(isinstance(i.item, StorageObject) for i in items))

    def test_children_of_plain_object_is_the_object(self) -> None:
        items = list(self.provider.get_child_items("b/top.txt"))
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].item.name, "top.txt")

    def test_child_names(self) -> None:
        names = {i.item: i for i in self.provider.get_child_names("b")}
        self.assertEqual(sorted(names), ["a", "top.txt"])
        self.assertEqual(names["a"].path, "b/a")
        self.assertTrue(names["a"].is_container)
        self.assertFalse(names["top.txt"].is_container)

    def test_child_names_read_only_the_first_page(self) -> None:
        storage = FakeStorage(page_size=2)
        for name in ("1", "2", "3"):
            storage.put("b", name)
        provider = _provider(storage)

        names = [i.item for i in provider.get_child_names("b")]

        self.assertEqual(names, ["1", "2"])

    def test_listing_warms_the_model(self) -> None:
        storage = FakeStorage(page_size=2)
        for name in ("a1", "a2", "z/late"):
            storage.put("b", name)
        provider = _provider(storage)

        list(provider.get_child_items("b/z"))
        storage.calls.clear()

        self.assertTrue(provider.item_exists("b/z/late"))
        self.assertEqual(storage.calls, [])

    def test_folder_after_sorting_siblings_is_navigable(self) -> None:
        storage = FakeStorage(page_size=2)
        for name in ("a-1", "a-2", "a.txt", "a/x.txt"):
            storage.put("b", name)
        provider = _provider(storage)

        items = list(provider.get_child_items("b/a"))

        self.assertEqual([i.path for i in items], ["b/a/x.txt"])
        self.assertEqual(storage.count("get_object"), 0)

    def test_stopping_ends_paging(self) -> None:
        storage = FakeStorage(page_size=1)
        for name in ("1", "2", "3"):
            storage.put("b", name)
        host = ProviderHost()
        provider = _provider(storage, host=host)

        items = []
        for item in provider.get_child_items("b", recurse=True):
            items.append(item)
            host.token.cancel()

        self.assertEqual(len(items), 1)


class TestProviderDrive(unittest.TestCase):
    def setUp(self) -> None:
        self.storage = FakeStorage()
        self.storage.add_bucket("b1", "p1")
        self.storage.add_bucket("b2", "p1")
        self.storage.add_bucket("secret", "p2")
        self.storage.add_bucket("b3", "p3")
        self.storage.forbidden_projects.add("p2")
        self.projects = FakeProjects([active("p1"), active("p2"), active("p3")])
        self.host = ProviderHost()
        self.provider = _provider(self.storage, self.projects, host=self.host)

    def test_forbidden_projects_are_skipped(self) -> None:
        items = list(self.provider.get_child_items(""))

        self.assertEqual(sorted(i.path for i in items), ["b1", "b2", "b3"])
        self.assertTrue(all(i.is_container for i in items))
        self.assertEqual(self.host.errors, [])

    def test_fresh_bucket_map_is_reused(self) -> None:
        list(self.provider.get_child_items(""))
        self.storage.calls.clear()

        names = sorted(i.item for i in self.provider.get_child_names(""))

        self.assertEqual(names, ["b1", "b2", "b3"])
        self.assertEqual(self.storage.count("list_buckets"), 0)

    def test_bucket_lookup_uses_last_map_without_refresh(self) -> None:
        list(self.provider.get_child_items(""))
        self.storage.calls.clear()

        self.assertTrue(self.provider.item_exists("b1"))
        self.assertEqual(self.provider.get_item("b3").item.name, "b3")
        self.assertEqual(self.storage.calls, [])

    def test_recursive_drive_listing_skips_forbidden_objects(self) -> None:
        self.storage.put("b1", "x.txt")
        self.storage.put("b3", "y.txt")
        self.storage.forbidden_object_buckets.add("b3")

        paths = sorted(i.path for i in self.provider.get_child_items("", recurse=True))

        self.assertEqual(paths, ["b1", "b1/x.txt", "b2", "b3"])
        self.assertEqual(self.host.errors, [])


class TestProviderNewItem(unittest.TestCase):
    def setUp(self) -> None:
        self.storage = FakeStorage()
        self.storage.add_bucket("b")
        self.provider = _provider(
            self.storage,
            settings=ProviderSettings(default_project="dp"),
        )

    def test_new_object_from_value(self) -> None:
        self.assertFalse(self.provider.item_exists("b/x.txt"))

        item = self.provider.new_item("b/x.txt", value="hello")

        self.assertEqual(self.storage.data[("b", "x.txt")], b"hello")
        self.assertEqual(self.storage.content_types[("b", "x.txt")], "text/plain; charset=utf-8")
        self.assertFalse(item.is_container)
        # Models are dropped, so the new object is visible.
        self.assertTrue(self.provider.item_exists("b/x.txt"))

    def test_new_directory_adds_separator(self) -> None:
        item = self.provider.new_item("b/folder", "Directory")

        self.assertIn(("b", "folder/"), self.storage.data)
        self.assertEqual(item.path, "b/folder/")
        self.assertTrue(item.is_container)
        self.assertTrue(self.provider.is_item_container("b/folder"))

    def test_new_object_from_file_infers_content_type(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "data.json")
            with open(path, "wb") as f:
                f.write(b"{}")
            self.provider.new_item(
                "b/data.json",
                options=NewObjectOptions(file=path, predefined_acl="publicRead"),
            )

        self.assertEqual(self.storage.data[("b", "data.json")], b"{}")
        self.assertEqual(self.storage.content_types[("b", "data.json")], "application/json")
        call = [c for c in self.storage.calls if c[0] == "insert_object"][-1]
        self.assertEqual(call[4], "publicRead")

    def test_new_object_missing_file(self) -> None:
        with self.assertRaises(InvalidArgumentError):
            self.provider.new_item("b/x", options=NewObjectOptions(file="/no/such/file"))

    def test_new_bucket_uses_default_project(self) -> None:
        item = self.provider.new_item(
            "nb",
            options=NewBucketOptions(storage_class="nearline", location="EU"),
        )

        self.assertIsInstance(item.item, BucketInfo)
        call = [c for c in self.storage.calls if c[0] == "insert_bucket"][-1]
        self.assertEqual(call[1:5], ("dp", "nb", "EU", "NEARLINE"))

    def test_new_bucket_falls_back_to_credentials_project(self) -> None:
        provider = _provider(self.storage, default_project_resolver=lambda: "adc")
        provider.new_item("nb")
        call = [c for c in self.storage.calls if c[0] == "insert_bucket"][-1]
        self.assertEqual(call[1], "adc")

    def test_new_bucket_without_project(self) -> None:
        provider = _provider(self.storage, default_project_resolver=lambda: None)
        with self.assertRaises(InvalidArgumentError):
            provider.new_item("nb")

    def test_new_bucket_is_remembered_in_known_map(self) -> None:
        list(self.provider.get_child_items(""))
        self.provider.new_item("nb")
        self.assertIn("nb", self.provider.cache.known_buckets())

    def test_wrong_options_kind(self) -> None:
        with self.assertRaises(InvalidArgumentError):
            self.provider.new_item("b/x", options=CopyOptions())

    def test_drive_cannot_be_created(self) -> None:
        with self.assertRaises(InvalidArgumentError):
            self.provider.new_item("")


class TestProviderCopy(unittest.TestCase):
    def setUp(self) -> None:
        self.storage = FakeStorage()
        for name in ("src/x.txt", "src/sub/y.txt", "other.txt"):
            self.storage.put("b", name, name.encode())
        self.storage.add_bucket("b2")
        self.provider = _provider(self.storage)

    def _relative(self, path: str, prefix: str) -> set:
        return {i.item.name[len(prefix):] for i in self.provider.get_child_items(path, recurse=True)}

    def test_recursive_copy_completeness(self) -> None:
        copied = self.provider.copy_item("b/src", "b/dst", recurse=True)

        self.assertEqual(sorted(i.item.name for i in copied), ["dst/sub/y.txt", "dst/x.txt"])
        self.assertEqual(
            self.storage.names("b"),
            ["dst/sub/y.txt", "dst/x.txt", "other.txt", "src/sub/y.txt", "src/x.txt"],
        )
        self.assertEqual(self._relative("b/dst", "dst/"), self._relative("b/src", "src/"))

    def test_recursive_copy_includes_real_marker(self) -> None:
        self.storage.put("b", "src/")
        provider = _provider(self.storage)

        copied = provider.copy_item("b/src/", "b2/dst/", recurse=True)

        self.assertIn("dst/", [i.item.name for i in copied])
        self.assertEqual(self.storage.names("b2"), ["dst/", "dst/sub/y.txt", "dst/x.txt"])

    def test_single_copy(self) -> None:
        copied = self.provider.copy_item("b/other.txt", "b/renamed.txt")

        self.assertEqual(len(copied), 1)
        self.assertEqual(self.storage.data[("b", "renamed.txt")], b"other.txt")

    def test_copy_to_bucket_keeps_leaf_name(self) -> None:
        self.provider.copy_item("b/src/x.txt", "b2")
        self.assertEqual(self.storage.names("b2"), ["x.txt"])

    def test_copy_options_are_applied(self) -> None:
        self.provider.copy_item(
            "b/other.txt",
            "b2/o.txt",
            options=CopyOptions(source_generation=3, destination_acl="private"),
        )
        call = [c for c in self.storage.calls if c[0] == "copy_object"][-1]
        self.assertEqual(call[5:], (3, "private"))

    def test_copy_drops_models(self) -> None:
        self.assertFalse(self.provider.item_exists("b/renamed.txt"))
        self.provider.copy_item("b/other.txt", "b/renamed.txt")
        self.assertTrue(self.provider.item_exists("b/renamed.txt"))

    def test_non_recursive_bucket_copy_is_rejected(self) -> None:
        with self.assertRaises(InvalidArgumentError):
            self.provider.copy_item("b", "b2")


class TestProviderRemove(unittest.TestCase):
    def setUp(self) -> None:
        self.storage = FakeStorage()
        for name in ("f/", "f/a", "f/sub/b", "g"):
            self.storage.put("b", name)
        self.host = ProviderHost()
        self.provider = _provider(self.storage, host=self.host)

    def test_remove_object(self) -> None:
        self.provider.remove_item("b/g")
        self.assertEqual(self.storage.names("b"), ["f/", "f/a", "f/sub/b"])
        self.assertFalse(self.provider.item_exists("b/g"))

    def test_remove_folder_recursive(self) -> None:
        self.provider.remove_item("b/f", recurse=True)
        self.assertEqual(self.storage.names("b"), ["g"])

    def test_remove_folder_non_recursive_deletes_only_marker(self) -> None:
        self.provider.remove_item("b/f/")
        self.assertEqual(self.storage.names("b"), ["f/a", "f/sub/b", "g"])

    def test_remove_folder_reports_item_errors(self) -> None:
        self.storage.failing_deletes.add("f/a")

        self.provider.remove_item("b/f", recurse=True)

        self.assertEqual([e.target for e in self.host.errors], ["b/f/a"])
        self.assertEqual(self.storage.names("b"), ["f/a", "g"])

    def test_remove_missing_object_raises(self) -> None:
        with self.assertRaises(NotFoundError):
            self.provider.remove_item("b/missing")

    def test_remove_non_empty_bucket_deletes_objects_first(self) -> None:
        self.storage.bucket_delete_conflicts = 1

        self.provider.remove_item("b", recurse=True)

        methods = [c[0] for c in self.storage.calls]
        last_object_delete = max(i for i, m in enumerate(methods) if m == "delete_object")
        first_bucket_delete = methods.index("delete_bucket")
        self.assertLess(last_object_delete, first_bucket_delete)
        self.assertEqual(self.storage.count("delete_object"), 4)
        self.assertEqual(self.storage.count("delete_bucket"), 2)
        self.assertNotIn("b", self.storage.buckets)

        final = self.host.progress[-1]
        self.assertEqual(final.percent_complete, 100)
        self.assertEqual(final.record_type, "completed")

    def test_bucket_conflict_is_retried_exactly_once(self) -> None:
        self.storage.bucket_delete_conflicts = 5

        with self.assertRaises(ConflictError):
            self.provider.remove_item("b", recurse=True)
        self.assertEqual(self.storage.count("delete_bucket"), 2)

    def test_removed_bucket_is_forgotten(self) -> None:
        self.storage.add_bucket("empty")
        list(self.provider.get_child_items(""))
        self.provider.remove_item("empty")
        self.assertNotIn("empty", self.provider.cache.known_buckets())

    def test_drive_cannot_be_removed(self) -> None:
        with self.assertRaises(InvalidArgumentError):
            self.provider.remove_item("")


if __name__ == "__main__":
    unittest.main()
