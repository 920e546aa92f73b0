"""Command line front end: `gcsnav <command> [args]`."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from typing import Any, Callable, Optional, Sequence, TextIO

from gcsnav.config import ProviderSettings
from gcsnav.errors import GcsNavError
from gcsnav.models import ItemError, ProviderItem
from gcsnav.provider import (
    DIRECTORY_ITEM_TYPE,
    GoogleCloudStorageProvider,
    NewObjectOptions,
    ProviderHost,
)

logger = logging.getLogger(__name__)


class _StderrHost(ProviderHost):
    def __init__(self, stderr: TextIO) -> None:
        super().__init__()
        self._stderr = stderr

    def write_error(self, error: ItemError) -> None:
        self.errors.append(error)
        print(f"error: {error.target}: {error.message}", file=self._stderr)


def _format_path(item: ProviderItem) -> str:
    path = item.path
    if item.is_container and path and not path.endswith("/"):
        path += "/"
    return path


def _cmd_ls(provider: GoogleCloudStorageProvider, args: argparse.Namespace, out: TextIO) -> None:
    for item in provider.get_child_items(args.path, recurse=args.recurse):
        print(_format_path(item), file=out)


def _cmd_stat(provider: GoogleCloudStorageProvider, args: argparse.Namespace, out: TextIO) -> None:
    item = provider.get_item(args.path)
    print(f"path: {item.path}", file=out)
    print(f"container: {str(item.is_container).lower()}", file=out)
    fields = dataclasses.fields(item.item) if dataclasses.is_dataclass(item.item) else ()
    for field in fields:
        value = getattr(item.item, field.name)
        if value is not None:
            print(f"{field.name}: {value}", file=out)


def _cmd_cat(provider: GoogleCloudStorageProvider, args: argparse.Namespace, out: TextIO) -> None:
    with provider.get_content_reader(args.path) as reader:
        for line in reader.read():
            print(line, file=out)


def _cmd_put(provider: GoogleCloudStorageProvider, args: argparse.Namespace, out: TextIO) -> None:
    options = NewObjectOptions(file=args.file, content_type=args.content_type)
    item = provider.new_item(args.path, value=args.text, options=options)
    print(_format_path(item), file=out)


def _cmd_mkdir(provider: GoogleCloudStorageProvider, args: argparse.Namespace, out: TextIO) -> None:
    item = provider.new_item(args.path, DIRECTORY_ITEM_TYPE)
    print(_format_path(item), file=out)


def _cmd_cp(provider: GoogleCloudStorageProvider, args: argparse.Namespace, out: TextIO) -> None:
    for item in provider.copy_item(args.source, args.destination, recurse=args.recurse):
        print(_format_path(item), file=out)


def _cmd_rm(provider: GoogleCloudStorageProvider, args: argparse.Namespace, out: TextIO) -> None:
    provider.remove_item(args.path, recurse=args.recurse)


def _cmd_clear(provider: GoogleCloudStorageProvider, args: argparse.Namespace, out: TextIO) -> None:
    provider.clear_content(args.path)


_Command = Callable[[GoogleCloudStorageProvider, argparse.Namespace, TextIO], None]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gcsnav",
        description="Navigate Google Cloud Storage as a drive of buckets, folders and objects.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--project", help="Default project for new buckets")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("ls", help="List the children of a container")
    p.add_argument("path", nargs="?", default="")
    p.add_argument("-r", "--recurse", action="store_true")
    p.set_defaults(func=_cmd_ls)

    p = sub.add_parser("stat", help="Describe one item")
    p.add_argument("path")
    p.set_defaults(func=_cmd_stat)

    p = sub.add_parser("cat", help="Print the content of an object")
    p.add_argument("path")
    p.set_defaults(func=_cmd_cat)

    p = sub.add_parser("put", help="Create an object")
    p.add_argument("path")
    source = p.add_mutually_exclusive_group()
    source.add_argument("--file", help="Local file to upload")
    source.add_argument("--text", help="Text content of the object")
    p.add_argument("--content-type")
    p.set_defaults(func=_cmd_put)

    p = sub.add_parser("mkdir", help="Create a bucket or a folder")
    p.add_argument("path")
    p.set_defaults(func=_cmd_mkdir)

    p = sub.add_parser("cp", help="Copy an object or a folder")
    p.add_argument("source")
    p.add_argument("destination")
    p.add_argument("-r", "--recurse", action="store_true")
    p.set_defaults(func=_cmd_cp)

    p = sub.add_parser("rm", help="Remove a bucket, folder or object")
    p.add_argument("path")
    p.add_argument("-r", "--recurse", action="store_true")
    p.set_defaults(func=_cmd_rm)

    p = sub.add_parser("clear", help="Empty the content of an object")
    p.add_argument("path")
    p.set_defaults(func=_cmd_clear)

    return parser


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    provider_factory: Optional[Callable[[ProviderSettings, ProviderHost], Any]] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    out = stdout or sys.stdout
    err = stderr or sys.stderr
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    host = _StderrHost(err)
    command: _Command = args.func
    try:
        settings = ProviderSettings.from_env()
        if args.project:
            settings = dataclasses.replace(settings, default_project=args.project)
        factory = provider_factory or (
            lambda s, h: GoogleCloudStorageProvider(s, host=h)
        )
        with factory(settings, host) as provider:
            command(provider, args, out)
    except GcsNavError as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {exc}", file=err)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
