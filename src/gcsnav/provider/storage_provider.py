"""GoogleCloudStorageProvider: Cloud Storage as a navigable drive."""

from __future__ import annotations

import io
import logging
import os
import tempfile
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Iterator, Optional

from gcsnav.auth import ServiceFactory
from gcsnav.config import ProviderSettings
from gcsnav.controller import ProjectController, StorageController, ThreadLocalControllers
from gcsnav.errors import (
    ConflictError,
    GcsNavError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    PermissionError,
)
from gcsnav.local import SEPARATOR, BucketModel, ProviderCache
from gcsnav.models import (
    BucketInfo,
    DriveInfo,
    FolderPrefix,
    GcsItem,
    ItemError,
    ProviderItem,
    StorageObject,
)
from gcsnav.path import GcsPath, GcsPathType
from gcsnav.util.mime import UTF8_TEXT_MIME, infer_content_type

from .bulk_delete import delete_all_objects
from .content import GcsContentWriter, GcsStringReader, PipeMediaUpload
from .enumeration import BucketEnumerator
from .host import ProviderHost
from .options import CopyOptions, NewBucketOptions, NewObjectOptions

logger = logging.getLogger(__name__)

DIRECTORY_ITEM_TYPE: str = "Directory"

# Downloads larger than this spill from memory to a temporary file.
_SPOOL_MAX_SIZE: int = 8 * 1024 * 1024


class GoogleCloudStorageProvider:
    """
    Navigation provider over Cloud Storage: drive -> buckets -> folders -> objects.

    Paths are `<bucket>[/<object key>]`; "/" and "\\" both separate. The empty
    path is the drive. Folders are synthesized from key prefixes, and a key
    ending in "/" is a folder marker object.

    Notes:
        - One thread drives a provider instance. Worker threads started by the
          provider only hand results back to that thread.
        - Every create, copy and delete drops all bucket content models.
        - Opening a content writer drops them too, so reading an object while
          it is being written may observe either version.
    """

    def __init__(
        self,
        settings: Optional[ProviderSettings] = None,
        *,
        service_factory: Optional[ServiceFactory] = None,
        host: Optional[ProviderHost] = None,
    ) -> None:
        settings = settings or ProviderSettings.from_env()
        factory = service_factory or ServiceFactory(scopes=settings.scopes)
        self._setup(
            storage=StorageController(factory),
            projects=ProjectController(factory),
            storage_factory=lambda: StorageController(factory),
            settings=settings,
            host=host,
            cache=None,
            default_project_resolver=lambda: factory.project_id,
        )

    @classmethod
    def from_controllers(
        cls,
        storage: StorageController,
        projects: ProjectController,
        *,
        storage_factory: Optional[Callable[[], StorageController]] = None,
        settings: Optional[ProviderSettings] = None,
        host: Optional[ProviderHost] = None,
        cache: Optional[ProviderCache] = None,
        default_project_resolver: Optional[Callable[[], Optional[str]]] = None,
    ) -> "GoogleCloudStorageProvider":
        """Create provider with injected controllers (useful for tests)."""
        obj = cls.__new__(cls)
        obj._setup(
            storage=storage,
            projects=projects,
            storage_factory=storage_factory or (lambda: storage),
            settings=settings or ProviderSettings(),
            host=host,
            cache=cache,
            default_project_resolver=default_project_resolver,
        )
        return obj

    def _setup(
        self,
        *,
        storage: StorageController,
        projects: ProjectController,
        storage_factory: Callable[[], StorageController],
        settings: ProviderSettings,
        host: Optional[ProviderHost],
        cache: Optional[ProviderCache],
        default_project_resolver: Optional[Callable[[], Optional[str]]],
    ) -> None:
        self._settings = settings
        self._storage = storage
        self._projects = projects
        self._storage_controllers: ThreadLocalControllers[StorageController] = (
            ThreadLocalControllers(storage_factory)
        )
        self._host = host or ProviderHost()
        self._cache = cache or ProviderCache(
            bucket_lifetime=settings.bucket_cache_lifetime,
            model_lifetime=settings.model_cache_lifetime,
        )
        self._default_project_resolver = default_project_resolver
        self._executor: Optional[ThreadPoolExecutor] = None
        self._closed = False

    # ----------------------------
    # Properties / lifecycle
    # ----------------------------
    @property
    def settings(self) -> ProviderSettings:
        return self._settings

    @property
    def host(self) -> ProviderHost:
        return self._host

    @property
    def cache(self) -> ProviderCache:
        return self._cache

    @property
    def drive(self) -> DriveInfo:
        return DriveInfo(name=self._settings.drive_name)

    def close(self) -> None:
        """Wait for background work, then drop every cache."""
        if self._closed:
            return
        self._closed = True
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        self._cache.clear()

    def __enter__(self) -> GoogleCloudStorageProvider:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ----------------------------
    # Queries
    # ----------------------------
    def item_exists(self, path: str) -> bool:
        self._check_open()
        gcs_path = GcsPath.parse(path)
        path_type = gcs_path.path_type
        if path_type is GcsPathType.DRIVE:
            return True
        if path_type is GcsPathType.BUCKET:
            try:
                self._get_bucket(gcs_path.bucket)
            except NotFoundError:
                return False
            return True
        try:
            return self._model(gcs_path.bucket).object_exists(gcs_path.object_path)
        except NotFoundError:
            return False

    def is_item_container(self, path: str) -> bool:
        """Drives, buckets, folder markers and key prefixes are containers."""
        self._check_open()
        gcs_path = GcsPath.parse(path)
        if gcs_path.path_type is not GcsPathType.OBJECT:
            return True
        try:
            return self._model(gcs_path.bucket).is_container(gcs_path.object_path)
        except NotFoundError:
            return False

    def has_child_items(self, path: str) -> bool:
        self._check_open()
        gcs_path = GcsPath.parse(path)
        if gcs_path.path_type is GcsPathType.DRIVE:
            return True
        try:
            return self._model(gcs_path.bucket).has_children(gcs_path.object_path)
        except NotFoundError:
            return False

    def get_item(self, path: str) -> ProviderItem:
        """
        Describe the item at `path`.

        Returns:
            ProviderItem whose `item` is a DriveInfo, BucketInfo, StorageObject
            or FolderPrefix.

        Raises:
            NotFoundError: if the bucket or object does not exist.
        """
        self._check_open()
        gcs_path = GcsPath.parse(path)
        path_type = gcs_path.path_type
        if path_type is GcsPathType.DRIVE:
            return ProviderItem(self.drive, path, True)
        if path_type is GcsPathType.BUCKET:
            return ProviderItem(self._get_bucket(gcs_path.bucket), path, True)

        gcs_object = self._model(gcs_path.bucket).get_object(gcs_path.object_path)
        return ProviderItem(gcs_object, path, self.is_item_container(path))

    def get_child_names(self, path: str) -> Iterator[ProviderItem]:
        """
        Yield the names of the children of a container.

        Only the first listing page of a bucket or folder is read. Each
        ProviderItem carries the child's name as `item`.
        """
        self._check_open()
        gcs_path = GcsPath.parse(path)
        if gcs_path.path_type is GcsPathType.DRIVE:
            for bucket in self._iter_buckets():
                yield ProviderItem(bucket.name, bucket.name, True)
            return

        for child in self._list_children(gcs_path, recurse=False, all_pages=False):
            child_path = str(GcsPath.from_item(child)).rstrip(SEPARATOR)
            name = child_path.rsplit(SEPARATOR, 1)[-1]
            yield ProviderItem(name, child_path, self._is_container(child))

    def get_child_items(self, path: str, recurse: bool = False) -> Iterator[ProviderItem]:
        """
        Yield the children of a container, or the item itself if it is not one.

        On the drive, buckets are yielded as they are discovered. With
        `recurse`, the drive listing descends into every bucket; a bucket whose
        objects are forbidden is skipped and other failures are written to the
        host as ItemErrors.
        """
        self._check_open()
        gcs_path = GcsPath.parse(path)
        if gcs_path.path_type is GcsPathType.DRIVE:
            for bucket in self._iter_buckets():
                yield ProviderItem(bucket, bucket.name, True)
                if recurse:
                    yield from self._bucket_descendants(bucket.name)
            return

        if not self.is_item_container(path):
            yield self.get_item(path)
            return

        for child in self._list_children(gcs_path, recurse=recurse):
            yield ProviderItem(child, str(GcsPath.from_item(child)), self._is_container(child))

    # ----------------------------
    # Mutations
    # ----------------------------
    def new_item(
        self,
        path: str,
        item_type: Optional[str] = None,
        value: Any = None,
        *,
        options: Optional[NewObjectOptions | NewBucketOptions] = None,
    ) -> ProviderItem:
        """
        Create a bucket or an object.

        `item_type="Directory"` creates a folder marker (a key ending in "/").
        An object's content is the local file named in the options, or
        `str(value)` encoded as UTF-8.

        Raises:
            InvalidArgumentError: for the drive path, options of the wrong
                kind, or a bucket without a resolvable project.
        """
        self._check_open()
        new_folder = item_type == DIRECTORY_ITEM_TYPE
        if new_folder and not path.endswith(SEPARATOR):
            path += SEPARATOR

        gcs_path = GcsPath.parse(path)
        path_type = gcs_path.path_type
        if path_type is GcsPathType.DRIVE:
            raise InvalidArgumentError("Cannot create the drive")

        if path_type is GcsPathType.BUCKET:
            bucket = self._new_bucket(gcs_path.bucket, _expect(options, NewBucketOptions))
            item = ProviderItem(bucket, path, True)
        else:
            gcs_object = self._new_object(gcs_path, value, _expect(options, NewObjectOptions))
            item = ProviderItem(gcs_object, path, new_folder)

        self._cache.invalidate_models()
        return item

    def copy_item(
        self,
        path: str,
        destination: str,
        recurse: bool = False,
        *,
        options: Optional[CopyOptions] = None,
    ) -> list[ProviderItem]:
        """
        Copy an object, or with `recurse` a folder and everything below it.

        A recursive copy re-roots every descendant of `path` under
        `destination`, and also copies `path` itself when it is a real folder
        marker. A non-recursive copy to a bucket path keeps the leaf name.

        Returns:
            The created objects.
        """
        self._check_open()
        options = options or CopyOptions()
        if recurse:
            path = path.rstrip("/\\") + SEPARATOR
            destination = destination.rstrip("/\\") + SEPARATOR

        source = GcsPath.parse(path)
        target = GcsPath.parse(destination)
        if source.path_type is GcsPathType.DRIVE or target.path_type is GcsPathType.DRIVE:
            raise InvalidArgumentError(
                "Copy source and destination must be inside a bucket",
                details={"path": path, "destination": destination},
            )
        if not recurse and source.path_type is not GcsPathType.OBJECT:
            raise InvalidArgumentError(
                "Copying a bucket requires recurse",
                details={"path": path},
            )

        copied: list[ProviderItem] = []
        if recurse:
            for child in self._list_children(source, recurse=True):
                if self._host.stopping:
                    break
                if not isinstance(child, StorageObject):
                    continue
                sub_path = source.relative_path_to_child(child.name)
                new_object = self._copy_object(
                    child,
                    target.bucket,
                    (target.object_path or "") + sub_path,
                    options,
                )
                copied.append(self._copied_item(new_object))

        if not recurse or (
            source.object_path and self._model(source.bucket).is_real(source.object_path)
        ):
            destination_key = target.object_path
            if not destination_key:
                destination_key = _leaf_name(source.object_path)
            new_object = self._copy_object(
                StorageObject(bucket=source.bucket, name=source.object_path),
                target.bucket,
                destination_key,
                options,
            )
            copied.append(self._copied_item(new_object))

        self._cache.invalidate_models()
        return copied

    def remove_item(self, path: str, recurse: bool = False) -> None:
        """
        Delete a bucket, a folder or an object.

        A bucket must be empty unless `recurse` is set, in which case its
        objects are deleted first. A folder loses its marker object, and with
        `recurse` every object below it. Failed deletes of individual objects
        are written to the host as ItemErrors.
        """
        self._check_open()
        gcs_path = GcsPath.parse(path)
        path_type = gcs_path.path_type
        if path_type is GcsPathType.DRIVE:
            raise InvalidArgumentError("Cannot remove the drive")

        if path_type is GcsPathType.BUCKET:
            self._remove_bucket(gcs_path.bucket, recurse)
            self._cache.forget_bucket(gcs_path.bucket)
        elif self.is_item_container(path):
            folder = GcsPath.parse(path.rstrip("/\\") + SEPARATOR)
            self._remove_folder(folder, recurse)
        else:
            self._storage.delete_object(gcs_path.bucket, gcs_path.object_path)
            logger.info("Deleted %s", gcs_path)

        self._cache.invalidate_models()

    # ----------------------------
    # Content
    # ----------------------------
    def get_content_reader(self, path: str) -> GcsStringReader:
        """Download an object and return a line reader over its content."""
        self._check_open()
        gcs_path = self._object_path(path, "read the content of")
        gcs_object = self._storage.get_object(gcs_path.bucket, gcs_path.object_path)

        stream = tempfile.SpooledTemporaryFile(max_size=_SPOOL_MAX_SIZE)
        try:
            self._storage.download(gcs_object.bucket, gcs_object.name, stream)
        except Exception:
            stream.close()
            raise
        stream.seek(0)
        return GcsStringReader(stream)

    def get_content_writer(self, path: str, content_type: Optional[str] = None) -> GcsContentWriter:
        """
        Start a streaming upload to `path` and return a line writer feeding it.

        The object is replaced when the writer is closed. Upload errors are
        raised from the writer.
        """
        self._check_open()
        gcs_path = self._object_path(path, "write the content of")
        content_type = content_type or UTF8_TEXT_MIME

        read_fd, write_fd = os.pipe()
        reader = os.fdopen(read_fd, "rb")
        writer = os.fdopen(write_fd, "wb")
        media = PipeMediaUpload(reader, content_type, self._settings.upload_chunk_size)
        controllers = self._storage_controllers

        def upload() -> StorageObject:
            try:
                return controllers.get().upload(
                    gcs_path.bucket,
                    gcs_path.object_path,
                    media,
                    content_type,
                )
            finally:
                reader.close()

        try:
            future = self._get_executor().submit(upload)
        except RuntimeError:
            reader.close()
            writer.close()
            raise

        self._cache.invalidate_models()
        return GcsContentWriter(writer, future)

    def clear_content(self, path: str) -> None:
        """Replace the content of an object with nothing, keeping the object."""
        self._check_open()
        gcs_path = self._object_path(path, "clear the content of")
        self._storage.insert_object(
            gcs_path.bucket,
            gcs_path.object_path,
            io.BytesIO(b""),
            UTF8_TEXT_MIME,
            resumable=False,
        )
        self._cache.invalidate_models()

    # ----------------------------
    # Internals
    # ----------------------------
    def _check_open(self) -> None:
        if self._closed:
            raise InvalidStateError("Provider is closed")

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._settings.max_workers,
                thread_name_prefix="gcsnav",
            )
        return self._executor

    def _model(self, bucket: str) -> BucketModel:
        return self._cache.bucket_model(bucket, lambda: BucketModel(bucket, self._storage))

    def _is_container(self, item: GcsItem) -> bool:
        if isinstance(item, FolderPrefix):
            return True
        return self._model(item.bucket).is_container(item.name)

    def _object_path(self, path: str, action: str) -> GcsPath:
        gcs_path = GcsPath.parse(path)
        if gcs_path.path_type is not GcsPathType.OBJECT:
            raise InvalidArgumentError(
                f"Cannot {action} a {gcs_path.path_type.value}",
                details={"path": path},
            )
        return gcs_path

    def _get_bucket(self, name: str) -> BucketInfo:
        # Only the last enumerated map is consulted; a full refresh is too slow
        # for a lookup of a single bucket.
        known = self._cache.known_buckets()
        if known is not None and name in known:
            return known[name]

        bucket = self._storage.get_bucket(name)
        self._cache.remember_bucket(bucket)
        return bucket

    def _iter_buckets(self) -> Iterator[BucketInfo]:
        if not self._cache.buckets.out_of_date():
            known = self._cache.known_buckets() or {}
            yield from list(known.values())
            return

        logger.debug("Refreshing the bucket list of every project")
        enumerator = BucketEnumerator(
            self._projects,
            self._storage_controllers,
            max_workers=self._settings.max_workers,
        )
        found: dict[str, BucketInfo] = {}
        for bucket in enumerator.iter_buckets(self._host):
            found[bucket.name] = bucket
            yield bucket
        self._cache.buckets.value_with(lambda: found)

    def _bucket_descendants(self, bucket: str) -> Iterator[ProviderItem]:
        try:
            yield from self.get_child_items(bucket, recurse=True)
        except PermissionError:
            # Access to a bucket does not imply access to its objects.
            logger.warning("Access to objects in bucket %s is restricted", bucket)
        except GcsNavError as exc:
            self._host.write_error(ItemError(exc, bucket))

    def _list_children(
        self,
        gcs_path: GcsPath,
        recurse: bool,
        all_pages: bool = True,
    ) -> Iterator[GcsItem]:
        bucket = gcs_path.bucket
        prefix = gcs_path.object_path or ""
        if prefix and not prefix.endswith(SEPARATOR):
            prefix += SEPARATOR

        model = self._model(bucket)
        page_token: Optional[str] = None
        while True:
            page = self._storage.list_objects(
                bucket,
                prefix=prefix,
                delimiter=None if recurse else SEPARATOR,
                page_token=page_token,
            )
            for gcs_object in page.items:
                # The folder marker is not its own child.
                if gcs_object.name != prefix:
                    model.add_object(gcs_object)
                    yield gcs_object
            for child_prefix in page.prefixes:
                yield FolderPrefix(bucket=bucket, name=child_prefix)

            page_token = page.next_page_token
            if not (all_pages and page_token) or self._host.stopping:
                break

    def _new_bucket(self, name: str, options: NewBucketOptions) -> BucketInfo:
        project = options.project or self._settings.default_project
        if not project and self._default_project_resolver is not None:
            project = self._default_project_resolver()
        if not project:
            raise InvalidArgumentError(
                "No project given for the new bucket and no default project is configured",
                details={"bucket": name},
            )

        bucket = self._storage.insert_bucket(
            project,
            name,
            location=options.location,
            storage_class=options.storage_class,
            predefined_acl=options.default_bucket_acl,
            predefined_default_object_acl=options.default_object_acl,
        )
        logger.info("Created bucket %s in project %s", bucket.name, project)
        self._cache.remember_bucket(bucket)
        return bucket

    def _new_object(self, gcs_path: GcsPath, value: Any, options: NewObjectOptions) -> StorageObject:
        if options.file is not None:
            content_type = options.content_type or infer_content_type(options.file)
            try:
                stream = open(options.file, "rb")
            except OSError as exc:
                raise InvalidArgumentError(
                    "Cannot open the file to upload",
                    details={"file": options.file},
                    cause=exc,
                ) from exc
        else:
            content_type = options.content_type or UTF8_TEXT_MIME
            text = "" if value is None else str(value)
            stream = io.BytesIO(text.encode("utf-8"))

        with stream:
            gcs_object = self._storage.insert_object(
                gcs_path.bucket,
                gcs_path.object_path,
                stream,
                content_type,
                predefined_acl=options.predefined_acl,
            )
        logger.info("Created %s", gcs_path)
        return gcs_object

    def _copy_object(
        self,
        source: StorageObject,
        destination_bucket: str,
        destination_name: str,
        options: CopyOptions,
    ) -> StorageObject:
        new_object = self._storage.copy_object(
            source.bucket,
            source.name,
            destination_bucket,
            destination_name,
            source_generation=options.source_generation,
            destination_predefined_acl=options.destination_acl,
        )
        logger.info(
            "Copied %s/%s to %s/%s",
            source.bucket,
            source.name,
            destination_bucket,
            destination_name,
        )
        return new_object

    def _copied_item(self, gcs_object: StorageObject) -> ProviderItem:
        return ProviderItem(
            gcs_object,
            str(GcsPath.from_item(gcs_object)),
            gcs_object.is_folder_marker,
        )

    def _remove_bucket(self, name: str, remove_objects: bool) -> None:
        if remove_objects:
            delete_all_objects(
                name,
                self._storage,
                self._get_executor(),
                self._storage_controllers,
                self._host,
            )
        try:
            self._storage.delete_bucket(name)
        except ConflictError:
            # Deletes of the objects may not have been observed yet.
            logger.info("Bucket %s is not empty yet, retrying the delete once", name)
            self._storage.delete_bucket(name)
        logger.info("Deleted bucket %s", name)

    def _remove_folder(self, folder: GcsPath, recurse: bool) -> None:
        if self._model(folder.bucket).is_real(folder.object_path):
            self._storage.delete_object(folder.bucket, folder.object_path)
            logger.info("Deleted folder marker %s", folder)
        if recurse:
            delete_all_objects(
                folder.bucket,
                self._storage,
                self._get_executor(),
                self._storage_controllers,
                self._host,
                prefix=folder.object_path,
            )


def _expect(options: Any, kind: type) -> Any:
    if options is None:
        return kind()
    if not isinstance(options, kind):
        raise InvalidArgumentError(
            f"Expected {kind.__name__}, got {type(options).__name__}",
        )
    return options


def _leaf_name(object_path: str) -> str:
    trimmed = object_path.rstrip(SEPARATOR)
    leaf = trimmed.rsplit(SEPARATOR, 1)[-1]
    return leaf + SEPARATOR if object_path.endswith(SEPARATOR) else leaf
