"""In-memory index of the objects and synthesized folders of one bucket."""

from __future__ import annotations

import logging
from typing import Optional

from gcsnav.controller import StorageController
from gcsnav.errors import NotFoundError
from gcsnav.models import FolderPrefix, GcsItem, StorageObject

logger = logging.getLogger(__name__)

SEPARATOR: str = "/"


class BucketModel:
    """
    Local description of the objects in a bucket.

    Real objects are tracked by full key. Key prefixes act as folders and are
    tracked with the separator trimmed, together with whether a child is known
    to exist strictly beneath them. A real object named "a/" is both the
    object "a/" and the prefix "a".

    Only the first listing page is read. When the bucket has more objects
    than that (`page_limited`), unknown keys are resolved with point queries
    and the answers, negative ones included, are remembered.
    """

    def __init__(self, bucket: str, controller: StorageController) -> None:
        self.bucket = bucket
        self._controller = controller
        # None marks a key confirmed absent by a point query.
        self._objects: dict[str, Optional[StorageObject]] = {}
        self._prefixes: dict[str, bool] = {}
        self._page_limited = False
        self.populate()

    @property
    def page_limited(self) -> bool:
        return self._page_limited

    def populate(self) -> None:
        """Read the first listing page of the bucket into the indexes."""
        page = self._controller.list_objects(self.bucket)
        self._page_limited = page.next_page_token is not None
        for gcs_object in page.items:
            self._index_object(gcs_object)
        logger.debug(
            "Indexed %d objects of bucket %s (page_limited=%s)",
            len(page.items),
            self.bucket,
            self._page_limited,
        )

    # ----------------------------
    # Queries
    # ----------------------------
    def object_exists(self, object_name: str) -> bool:
        """True if the name is a real object or a folder prefix."""
        if self._objects.get(object_name) is not None:
            return True
        if object_name.rstrip(SEPARATOR) in self._prefixes:
            return True
        if object_name in self._objects or not self._page_limited:
            return False
        return self._fetch(object_name) is not None

    def is_container(self, object_name: str) -> bool:
        """True if the name is a folder: a marker object or a prefix of other objects."""
        folder = object_name.rstrip(SEPARATOR)
        if folder in self._prefixes:
            return True
        if not self._page_limited or not folder:
            return False

        # Siblings such as "a-1" sort before "a/", so list under the folder
        # itself rather than searching the prefixes of "a".
        marker = folder + SEPARATOR
        page = self._controller.list_objects(self.bucket, prefix=marker, max_results=2)
        if not page.items and not page.prefixes:
            return False

        has_children = bool(page.prefixes) or any(o.name != marker for o in page.items)
        self._add_prefix(folder, has_children=has_children)
        return True

    def has_children(self, object_name: Optional[str]) -> bool:
        if not object_name:
            return any(o is not None for o in self._objects.values())

        folder = object_name.rstrip(SEPARATOR)
        if self._page_limited and folder not in self._prefixes:
            marker = folder + SEPARATOR
            page = self._controller.list_objects(self.bucket, prefix=marker, max_results=2)
            return bool(page.prefixes) or any(o.name != marker for o in page.items)

        return self._prefixes.get(folder, False)

    def get_object(self, object_name: str) -> GcsItem:
        """
        Return the object with the given name.

        A known prefix without a marker object yields a FolderPrefix and makes
        no remote call.

        Raises:
            NotFoundError: if the object does not exist.
        """
        if object_name in self._objects:
            cached = self._objects[object_name]
            if cached is None:
                raise NotFoundError(
                    "Object does not exist",
                    details={"bucket": self.bucket, "object": object_name},
                )
            return cached

        folder = object_name.rstrip(SEPARATOR)
        if folder in self._prefixes:
            marker = self._objects.get(folder + SEPARATOR)
            if marker is not None:
                return marker
            return FolderPrefix(bucket=self.bucket, name=folder + SEPARATOR)

        gcs_object = self._controller.get_object(self.bucket, object_name)
        self._index_object(gcs_object)
        return gcs_object

    def is_real(self, object_name: str) -> bool:
        """
        True if the name is an actual stored object.

        A name can exist without being real when it is only a prefix of
        other objects.
        """
        if object_name in self._objects:
            return self._objects[object_name] is not None
        if not self._page_limited:
            return False
        return self._fetch(object_name) is not None

    # ----------------------------
    # Mutation
    # ----------------------------
    def add_object(self, gcs_object: StorageObject) -> None:
        """Add or update an object, keeping the prefix index consistent."""
        self._index_object(gcs_object)

    # ----------------------------
    # Internals
    # ----------------------------
    def _fetch(self, object_name: str) -> Optional[StorageObject]:
        try:
            gcs_object = self._controller.get_object(self.bucket, object_name)
        except NotFoundError:
            self._objects[object_name] = None
            return None
        self._index_object(gcs_object)
        return gcs_object

    def _index_object(self, gcs_object: StorageObject) -> None:
        name = gcs_object.name
        self._objects[name] = gcs_object

        prefix = name.rstrip(SEPARATOR)
        last_separator = name.rfind(SEPARATOR)
        # For "a/b.txt" the parent "a" has a child; for the marker "a/" we
        # do not know yet.
        children = 0 < last_separator < len(prefix) - 1
        while last_separator > 0:
            prefix = prefix[:last_separator]
            if prefix in self._prefixes:
                self._prefixes[prefix] = children or self._prefixes[prefix]
                break
            self._prefixes[prefix] = children
            children = True
            last_separator = prefix.rfind(SEPARATOR)

    def _add_prefix(self, folder: str, *, has_children: bool) -> None:
        self._prefixes[folder] = has_children or self._prefixes.get(folder, False)
        parent = folder
        last_separator = parent.rfind(SEPARATOR)
        while last_separator > 0:
            parent = parent[:last_separator]
            self._prefixes[parent] = True
            last_separator = parent.rfind(SEPARATOR)
