"""Cloud Resource Manager API controller (internal use only)."""

from __future__ import annotations

from typing import Any, Iterator, Optional

from gcsnav.auth import ServiceFactory
from gcsnav.models import ProjectInfo, ProjectListPage

from .base import ApiController


class ProjectController(ApiController):
    """Lists the projects accessible to the caller's identity."""

    def __init__(self, factory: ServiceFactory) -> None:
        super().__init__(factory.build_resource_manager_service())

    @classmethod
    def from_service(cls, service: Any) -> "ProjectController":
        """Create controller from a pre-built resource manager service (useful for tests)."""
        obj = cls.__new__(cls)
        ApiController.__init__(obj, service)
        return obj

    def list_projects(self, *, page_token: Optional[str] = None) -> ProjectListPage:
        kwargs = {"pageToken": page_token} if page_token else {}
        req = self._service.projects().list(**kwargs)
        data = self._execute(req.execute)
        items = [_project_dict_to_project_info(p) for p in data.get("projects", []) or []]
        return ProjectListPage(items=items, next_page_token=data.get("nextPageToken") or None)

    def iter_active_projects(self) -> Iterator[ProjectInfo]:
        """Yield every ACTIVE project, following pagination."""
        page_token: Optional[str] = None
        while True:
            page = self.list_projects(page_token=page_token)
            for project in page.items:
                if project.is_active:
                    yield project

            page_token = page.next_page_token
            if not page_token:
                break


def _project_dict_to_project_info(data: dict[str, Any]) -> ProjectInfo:
    name = data.get("name")
    number = data.get("projectNumber")
    state = data.get("lifecycleState")
    return ProjectInfo(
        project_id=str(data.get("projectId", "")),
        name=name if isinstance(name, str) else None,
        project_number=str(number) if isinstance(number, (str, int)) else None,
        lifecycle_state=state if isinstance(state, str) else None,
    )
