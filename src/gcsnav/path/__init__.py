from __future__ import annotations

from .gcs_path import GcsPath, GcsPathType

__all__ = ["GcsPath", "GcsPathType"]
