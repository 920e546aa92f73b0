from __future__ import annotations

import mimetypes

FOLDER_CONTENT_TYPE: str = "Folder"

OCTET_STREAM_MIME: str = "application/octet-stream"
UTF8_TEXT_MIME: str = "text/plain; charset=utf-8"

# mimetypes reads the platform registry, which misses a few types users upload
# often; these always win.
_EXTRA_TYPES: dict[str, str] = {
    ".json": "application/json",
    ".md": "text/markdown",
    ".ps1": "text/plain",
    ".yaml": "application/x-yaml",
    ".yml": "application/x-yaml",
}


def is_folder(content_type: str | None) -> bool:
    return content_type == FOLDER_CONTENT_TYPE


def infer_content_type(file_name: str) -> str:
    """
    Infer the content type of a local file from its extension.

    Falls back to application/octet-stream when the extension is unknown.
    """
    lowered = file_name.lower()
    for ext, content_type in _EXTRA_TYPES.items():
        if lowered.endswith(ext):
            return content_type

    guessed, _ = mimetypes.guess_type(file_name, strict=False)
    return guessed or OCTET_STREAM_MIME
