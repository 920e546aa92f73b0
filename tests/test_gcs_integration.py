import argparse
import os
import tempfile
import unittest
import uuid
from pathlib import Path

from gcsnav import GoogleCloudStorageProvider, NewObjectOptions, ProviderSettings


def _env(name: str) -> str:
    return os.environ.get(name, "").strip()


class TestGcsIntegration(unittest.TestCase):
    """
    Integration test against real Cloud Storage.

    Required env vars:
        - GCSNAV_TEST_BUCKET: existing bucket used as a sandbox; everything
          is written below a random prefix and removed again

    Credentials come from Application Default Credentials.
    """

    @classmethod
    def setUpClass(cls) -> None:
        cls.bucket = _env("GCSNAV_TEST_BUCKET")
        if not cls.bucket:
            raise unittest.SkipTest("Set GCSNAV_TEST_BUCKET to run integration tests")
        cls.root = f"{cls.bucket}/gcsnav_it_{uuid.uuid4().hex[:8]}"

    def setUp(self) -> None:
        self.provider = GoogleCloudStorageProvider(ProviderSettings.from_env())
        self.addCleanup(self.provider.close)
        self.addCleanup(self._remove_root)

    def _remove_root(self) -> None:
        provider = GoogleCloudStorageProvider(ProviderSettings.from_env())
        with provider:
            if provider.item_exists(self.root):
                provider.remove_item(self.root, recurse=True)

    def test_navigation_smoke(self) -> None:
        p = self.provider
        self.assertTrue(p.item_exists(self.bucket))

        p.new_item(f"{self.root}/folder", "Directory")
        p.new_item(f"{self.root}/folder/a.txt", value="alpha")

        with tempfile.TemporaryDirectory() as tmp:
            src = Path(tmp) / "b.json"
            src.write_text('{"b": 1}\n', encoding="utf-8")
            p.new_item(
                f"{self.root}/folder/sub/b.json",
                options=NewObjectOptions(file=str(src)),
            )

        self.assertTrue(p.is_item_container(f"{self.root}/folder"))
        self.assertTrue(p.has_child_items(f"{self.root}/folder"))
        self.assertEqual(
            p.get_item(f"{self.root}/folder/sub/b.json").item.content_type,
            "application/json",
        )

        copied = p.copy_item(f"{self.root}/folder", f"{self.root}/copy", recurse=True)
        self.assertEqual(
            sorted(i.item.name.rsplit("/copy/", 1)[-1] for i in copied),
            ["", "a.txt", "sub/b.json"],
        )

        with p.get_content_writer(f"{self.root}/copy/lines.txt") as writer:
            writer.write(["one", "two"])
        with p.get_content_reader(f"{self.root}/copy/lines.txt") as reader:
            self.assertEqual(reader.read(), ["one", "two"])

        p.clear_content(f"{self.root}/copy/lines.txt")
        self.assertEqual(p.get_item(f"{self.root}/copy/lines.txt").item.size, 0)

        p.remove_item(f"{self.root}/copy", recurse=True)
        self.assertFalse(p.item_exists(f"{self.root}/copy/a.txt"))
        self.assertEqual(p.host.errors, [])


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose unittest output",
    )
    return parser.parse_args()


if __name__ == "__main__":
    args = _parse_args()
    unittest.main(verbosity=2 if args.verbose else 1)
