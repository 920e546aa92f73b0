"""Concurrent deletion of every object in a bucket."""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, as_completed
from typing import Optional

from gcsnav.controller import StorageController, ThreadLocalControllers
from gcsnav.models import ItemError, ProgressRecord
from gcsnav.util.ids import new_activity_id

from .host import ProviderHost

logger = logging.getLogger(__name__)

DELETE_ACTIVITY: str = "Delete bucket objects"


def delete_all_objects(
    bucket: str,
    controller: StorageController,
    executor: Executor,
    storage_controllers: ThreadLocalControllers[StorageController],
    host: ProviderHost,
    *,
    prefix: Optional[str] = None,
) -> int:
    """
    Delete every object of `bucket`, or only those under `prefix`.

    The listing is paged on the calling thread and one delete per object is
    submitted to `executor`. Dispatch stops early when the host is stopping;
    deletes already submitted still run to completion.

    Returns:
        Number of deletes dispatched.
    """

    def delete(name: str) -> str:
        storage_controllers.get().delete_object(bucket, name)
        return name

    futures: dict[Future[str], str] = {}
    page_token: Optional[str] = None
    while True:
        page = controller.list_objects(bucket, prefix=prefix, page_token=page_token)
        for gcs_object in page.items:
            if host.stopping:
                break
            futures[executor.submit(delete, gcs_object.name)] = gcs_object.name

        page_token = page.next_page_token
        if not page_token or host.stopping:
            break

    logger.info("Deleting %d objects of bucket %s", len(futures), bucket)
    wait_with_progress(futures, host, target_prefix=f"{bucket}/")
    return len(futures)


def wait_with_progress(
    futures: dict[Future[str], str],
    host: ProviderHost,
    *,
    target_prefix: str = "",
    activity_id: Optional[int] = None,
) -> None:
    """
    Wait for delete futures, writing a progress record as each one finishes.

    Failed deletes are written to the host as ItemErrors. A final record of
    type "completed" at 100% is always written.
    """
    activity_id = new_activity_id() if activity_id is None else activity_id
    total = len(futures)
    remaining = total

    for future in as_completed(futures):
        remaining -= 1
        exc = future.exception()
        if exc is not None:
            host.write_error(ItemError(exc, target_prefix + futures[future]))

        host.write_progress(
            ProgressRecord(
                activity_id=activity_id,
                activity=DELETE_ACTIVITY,
                status="Deleting objects",
                percent_complete=(total - remaining) * 100 // total,
            )
        )

    host.write_progress(
        ProgressRecord(
            activity_id=activity_id,
            activity=DELETE_ACTIVITY,
            status="Objects deleted",
            percent_complete=100,
            record_type="completed",
        )
    )
