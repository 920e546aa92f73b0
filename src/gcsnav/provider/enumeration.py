"""Concurrent enumeration of the buckets of every accessible project."""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Iterator, Optional, Union

from gcsnav.controller import ProjectController, StorageController, ThreadLocalControllers
from gcsnav.errors import PermissionError
from gcsnav.models import BucketInfo, ItemError

from .host import ProviderHost

logger = logging.getLogger(__name__)

PROJECTS_TARGET: str = "projects"

_DONE = object()


class BucketEnumerator:
    """
    List the buckets of all ACTIVE projects.

    Projects are listed on a producer thread; each project's buckets are
    listed on a worker of a thread pool. Workers feed a single queue that the
    calling thread drains, so buckets are yielded as soon as they arrive and
    only the calling thread touches the caller's state.
    """

    def __init__(
        self,
        projects: ProjectController,
        storage_controllers: ThreadLocalControllers[StorageController],
        *,
        max_workers: int = 8,
    ) -> None:
        self._projects = projects
        self._storage_controllers = storage_controllers
        self._max_workers = max_workers

    def iter_buckets(self, host: ProviderHost) -> Iterator[BucketInfo]:
        """
        Yield every bucket visible to the caller.

        A 403 on one project's buckets drops that project silently. Any other
        failure is written to `host` as an ItemError once the queue is drained.
        """
        results: queue.Queue[Union[BucketInfo, object]] = queue.Queue()
        errors: list[ItemError] = []
        abandoned = threading.Event()

        def stop_requested() -> bool:
            return abandoned.is_set() or host.stopping

        def list_project(project_id: str) -> None:
            controller = self._storage_controllers.get()
            page_token: Optional[str] = None
            try:
                while not stop_requested():
                    page = controller.list_buckets(project_id, page_token=page_token)
                    for bucket in page.items:
                        results.put(bucket)
                    page_token = page.next_page_token
                    if not page_token:
                        break
            except PermissionError:
                logger.warning("Skipping project %s: access to its buckets is forbidden", project_id)
            except Exception as exc:
                errors.append(ItemError(exc, project_id))

        def produce(executor: ThreadPoolExecutor) -> None:
            futures = []
            try:
                for project in self._projects.iter_active_projects():
                    if stop_requested():
                        break
                    logger.debug("Listing buckets of project %s", project.project_id)
                    futures.append(executor.submit(list_project, project.project_id))
            except Exception as exc:
                errors.append(ItemError(exc, PROJECTS_TARGET))
            finally:
                wait(futures)
                results.put(_DONE)

        executor = ThreadPoolExecutor(
            max_workers=self._max_workers,
            thread_name_prefix="gcsnav-buckets",
        )
        producer = threading.Thread(
            target=produce,
            args=(executor,),
            name="gcsnav-projects",
            daemon=True,
        )
        producer.start()
        try:
            while True:
                item = results.get()
                if item is _DONE:
                    break
                yield item  # type: ignore[misc]
        finally:
            abandoned.set()
            producer.join()
            executor.shutdown(wait=True)

        for error in errors:
            host.write_error(error)
