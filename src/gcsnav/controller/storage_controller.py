"""Cloud Storage JSON API controller (internal use only)."""

from __future__ import annotations

import logging
from typing import IO, Any, Optional

from gcsnav.auth import ServiceFactory
from gcsnav.errors import AuthError
from gcsnav.models import BucketInfo, BucketListPage, ObjectListPage, StorageObject
from gcsnav.util.time import parse_rfc3339_or_none

from .base import ApiController

logger = logging.getLogger(__name__)

FULL_PROJECTION: str = "full"


class StorageController(ApiController):
    """
    Cloud Storage API controller (internal only).

    Notes:
        - The storage `service` object is NOT exposed.
        - One controller owns one HTTP transport; do not share it between threads.
    """

    def __init__(self, factory: ServiceFactory) -> None:
        super().__init__(factory.build_storage_service())

    @classmethod
    def from_service(cls, service: Any) -> "StorageController":
        """Create controller from a pre-built storage service (useful for tests)."""
        obj = cls.__new__(cls)
        ApiController.__init__(obj, service)
        return obj

    # ----------------------------
    # Objects
    # ----------------------------
    def list_objects(
        self,
        bucket: str,
        *,
        prefix: Optional[str] = None,
        delimiter: Optional[str] = None,
        page_token: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> ObjectListPage:
        req = self._service.objects().list(
            **_drop_none(
                bucket=bucket,
                prefix=prefix or None,
                delimiter=delimiter,
                pageToken=page_token,
                maxResults=max_results,
                projection=FULL_PROJECTION,
            )
        )
        data = self._execute(req.execute)
        items = [_object_dict_to_storage_object(o) for o in data.get("items", []) or []]
        prefixes = [p for p in data.get("prefixes", []) or [] if isinstance(p, str)]
        return ObjectListPage(
            items=items,
            prefixes=prefixes,
            next_page_token=data.get("nextPageToken") or None,
        )

    def get_object(self, bucket: str, name: str) -> StorageObject:
        req = self._service.objects().get(
            bucket=bucket,
            object=name,
            projection=FULL_PROJECTION,
        )
        data = self._execute(req.execute)
        return _object_dict_to_storage_object(data)

    def insert_object(
        self,
        bucket: str,
        name: str,
        stream: IO[bytes],
        content_type: str,
        *,
        predefined_acl: Optional[str] = None,
        resumable: bool = True,
    ) -> StorageObject:
        """Upload the content of a seekable binary stream as a new object."""
        try:
            from googleapiclient.http import MediaIoBaseUpload
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "google-api-python-client is not available",
                cause=exc,
            ) from exc

        media = MediaIoBaseUpload(stream, mimetype=content_type, resumable=resumable)
        return self.upload(
            bucket,
            name,
            media,
            content_type,
            predefined_acl=predefined_acl,
        )

    def upload(
        self,
        bucket: str,
        name: str,
        media: Any,
        content_type: str,
        *,
        predefined_acl: Optional[str] = None,
    ) -> StorageObject:
        """Run an insert request for an already-prepared googleapiclient MediaUpload."""
        req = self._service.objects().insert(
            **_drop_none(
                bucket=bucket,
                name=name,
                body={"name": name, "contentType": content_type},
                media_body=media,
                predefinedAcl=predefined_acl,
                projection=FULL_PROJECTION,
            )
        )
        if media.resumable():
            data = None
            while data is None:
                _, data = self._execute(req.next_chunk)
        else:
            data = self._execute(req.execute)
        logger.debug("Uploaded gs://%s/%s", bucket, name)
        return _object_dict_to_storage_object(data)

    def delete_object(self, bucket: str, name: str) -> None:
        req = self._service.objects().delete(bucket=bucket, object=name)
        self._execute(req.execute)

    def copy_object(
        self,
        source_bucket: str,
        source_name: str,
        destination_bucket: str,
        destination_name: str,
        *,
        source_generation: Optional[int] = None,
        destination_predefined_acl: Optional[str] = None,
    ) -> StorageObject:
        req = self._service.objects().copy(
            **_drop_none(
                sourceBucket=source_bucket,
                sourceObject=source_name,
                destinationBucket=destination_bucket,
                destinationObject=destination_name,
                body={},
                sourceGeneration=source_generation,
                destinationPredefinedAcl=destination_predefined_acl,
                projection=FULL_PROJECTION,
            )
        )
        data = self._execute(req.execute)
        return _object_dict_to_storage_object(data)

    def download(self, bucket: str, name: str, fd: IO[bytes]) -> None:
        """Stream the media body of an object into a writable binary file object."""
        try:
            from googleapiclient.http import MediaIoBaseDownload
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "google-api-python-client is not available",
                cause=exc,
            ) from exc

        req = self._service.objects().get_media(bucket=bucket, object=name)
        downloader = MediaIoBaseDownload(fd, req)
        done = False
        while not done:
            _, done = self._execute(downloader.next_chunk)

    # ----------------------------
    # Buckets
    # ----------------------------
    def get_bucket(self, name: str) -> BucketInfo:
        req = self._service.buckets().get(bucket=name)
        data = self._execute(req.execute)
        return _bucket_dict_to_bucket_info(data)

    def list_buckets(
        self,
        project: str,
        *,
        page_token: Optional[str] = None,
    ) -> BucketListPage:
        req = self._service.buckets().list(
            **_drop_none(project=project, pageToken=page_token)
        )
        data = self._execute(req.execute)
        items = [_bucket_dict_to_bucket_info(b) for b in data.get("items", []) or []]
        return BucketListPage(items=items, next_page_token=data.get("nextPageToken") or None)

    def insert_bucket(
        self,
        project: str,
        name: str,
        *,
        location: Optional[str] = None,
        storage_class: Optional[str] = None,
        predefined_acl: Optional[str] = None,
        predefined_default_object_acl: Optional[str] = None,
    ) -> BucketInfo:
        body = _drop_none(name=name, location=location, storageClass=storage_class)
        req = self._service.buckets().insert(
            **_drop_none(
                project=project,
                body=body,
                predefinedAcl=predefined_acl,
                predefinedDefaultObjectAcl=predefined_default_object_acl,
            )
        )
        data = self._execute(req.execute)
        return _bucket_dict_to_bucket_info(data)

    def delete_bucket(self, name: str) -> None:
        req = self._service.buckets().delete(bucket=name)
        self._execute(req.execute)


def _drop_none(**kwargs: Any) -> dict[str, Any]:
    # Discovery methods validate enum parameters, so None must not be passed.
    return {k: v for k, v in kwargs.items() if v is not None}


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def _object_dict_to_storage_object(data: dict[str, Any]) -> StorageObject:
    content_type = data.get("contentType")
    media_link = data.get("mediaLink")
    md5 = data.get("md5Hash")

    return StorageObject(
        bucket=str(data.get("bucket", "")),
        name=str(data.get("name", "")),
        content_type=content_type if isinstance(content_type, str) else None,
        size=_to_int(data.get("size")),
        generation=_to_int(data.get("generation")),
        media_link=media_link if isinstance(media_link, str) else None,
        md5_hash=md5 if isinstance(md5, str) else None,
        time_created=parse_rfc3339_or_none(data.get("timeCreated")),
        updated=parse_rfc3339_or_none(data.get("updated")),
    )


def _bucket_dict_to_bucket_info(data: dict[str, Any]) -> BucketInfo:
    project_number = data.get("projectNumber")
    if isinstance(project_number, int):
        project_number = str(project_number)

    return BucketInfo(
        name=str(data.get("name", "")),
        id=data.get("id") if isinstance(data.get("id"), str) else None,
        project_number=project_number if isinstance(project_number, str) else None,
        location=data.get("location") if isinstance(data.get("location"), str) else None,
        storage_class=(
            data.get("storageClass") if isinstance(data.get("storageClass"), str) else None
        ),
        time_created=parse_rfc3339_or_none(data.get("timeCreated")),
    )
