"""Credential and API service construction for gcsnav."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from gcsnav.config import DEFAULT_SCOPES
from gcsnav.errors import AuthError, InvalidArgumentError

logger = logging.getLogger(__name__)


class ServiceFactory:
    """
    Create Cloud Storage and Cloud Resource Manager API service objects.

    Credentials come from Application Default Credentials unless a credentials
    object is supplied. Each build_* call returns a new service with its own
    HTTP transport, so a service must not be shared between threads.
    """

    def __init__(
        self,
        *,
        scopes: Optional[Sequence[str]] = None,
        credentials: Any = None,
        project_id: Optional[str] = None,
    ) -> None:
        use_scopes = list(scopes) if scopes is not None else list(DEFAULT_SCOPES)
        if not use_scopes or not all(isinstance(s, str) and s.strip() for s in use_scopes):
            raise InvalidArgumentError("scopes must be a non-empty sequence of strings")

        self._scopes = use_scopes
        self._credentials = credentials
        self._project_id = project_id
        self._resolved = credentials is not None

    @property
    def project_id(self) -> Optional[str]:
        """Project associated with the credentials, if any."""
        self.get_credentials()
        return self._project_id

    def get_credentials(self):
        """
        Return credentials for the configured scopes.

        Returns:
            google.auth.credentials.Credentials

        Raises:
            AuthError: if no default credentials can be found.
        """
        if self._resolved:
            return self._credentials

        try:
            import google.auth
            from google.auth.exceptions import DefaultCredentialsError
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "Google auth libraries are not available",
                details={"hint": "Install google-auth"},
                cause=exc,
            ) from exc

        try:
            creds, project_id = google.auth.default(scopes=self._scopes)
        except DefaultCredentialsError as exc:
            raise AuthError(
                "Application Default Credentials are not configured",
                details={"hint": "Run `gcloud auth application-default login`"},
                cause=exc,
            ) from exc

        logger.debug("Loaded default credentials (project=%s)", project_id)
        self._credentials = creds
        if self._project_id is None:
            self._project_id = project_id
        self._resolved = True
        return creds

    def build_storage_service(self):
        """
        Build a Cloud Storage JSON API (v1) service resource.

        Returns:
            googleapiclient.discovery.Resource
        """
        return self._build("storage", "v1")

    def build_resource_manager_service(self):
        """
        Build a Cloud Resource Manager API (v1) service resource.

        Returns:
            googleapiclient.discovery.Resource
        """
        return self._build("cloudresourcemanager", "v1")

    def _build(self, name: str, version: str):
        try:
            from googleapiclient.discovery import build
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "google-api-python-client is not available",
                details={"hint": "Install google-api-python-client"},
                cause=exc,
            ) from exc

        creds = self.get_credentials()
        try:
            return build(name, version, credentials=creds, cache_discovery=False)
        except Exception as exc:
            raise AuthError(f"Failed to build {name} service", cause=exc) from exc
