"""Internal controller exports for gcsnav."""

from __future__ import annotations

from .pool import ThreadLocalControllers
from .project_controller import ProjectController
from .storage_controller import StorageController

__all__ = ["StorageController", "ProjectController", "ThreadLocalControllers"]
