import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import httpx

from fileshare.client.batch import FileBatch, prefilter_files
from fileshare.client.notify import Notice, NoticeLevel
from fileshare.client.transport import FileUploader, UploadState, UploadTask, UploadTransport, fetch_csrf_token
from fileshare.client.viewer import SharedFileViewer
from fileshare.core.filetypes import MAX_FILES, format_file_size

DEFAULT_SERVER = "http://localhost:8000"


def print_notice(notice: Notice) -> None:
    line = f"[{notice.level.value}] {notice.message}"
    if notice.link:
        line += f" -> {notice.link}"
    print(line, file=sys.stderr)


def _print_progress(task: UploadTask) -> None:
    if task.state is UploadState.UPLOADING:
        print(f"{task.file_name}: {task.progress}%", file=sys.stderr)


async def run_upload(server: str, paths: List[str], max_files: int) -> int:
    accepted, _ = prefilter_files(paths, notify=print_notice)

    async with httpx.AsyncClient(timeout=60.0) as client:
        with FileBatch(max_files=max_files, notify=print_notice) as batch:
            if accepted and not batch.add(accepted):
                return 1
            try:
                token = await fetch_csrf_token(client, server)
            except httpx.TransportError as e:
                print_notice(Notice(NoticeLevel.ERROR, f"Network error: {e}"))
                return 1
            except (httpx.HTTPStatusError, ValueError) as e:
                print_notice(Notice(NoticeLevel.ERROR, f"Could not read the upload page: {e}"))
                return 1
            uploader = FileUploader(
                UploadTransport(client, server),
                batch,
                token,
                notify=print_notice,
                on_progress=_print_progress,
            )
            files = batch.files
            tasks = await uploader.upload()

    if not tasks:
        return 1
    for pending, task in zip(files, tasks):
        if task.state is UploadState.COMPLETED:
            print(f"{task.file_name}\t{format_file_size(pending.size)}\t{task.shareable_url}")
        else:
            print(f"{task.file_name}\tFAILED\t{task.error}")
    return 0 if all(t.state is UploadState.COMPLETED for t in tasks) else 1


async def run_view(server: str, target: str) -> int:
    async with httpx.AsyncClient(timeout=30.0) as client:
        view = await SharedFileViewer(client, server).open(target)
    if not view.found:
        print(f"{view.filename}: {view.error}", file=sys.stderr)
        return 1
    print(f"{view.filename}\t{view.kind.value}\tdownload: {view.file_url}\tshare: {view.share_url}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fileshare", description="Upload and share files")
    parser.add_argument("--server", default=DEFAULT_SERVER, help="Base URL of the file share server")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    upload = sub.add_parser("upload", help="Upload up to MAX_FILES files")
    upload.add_argument("files", nargs="+")
    upload.add_argument("--max-files", type=int, default=MAX_FILES)

    view = sub.add_parser("view", help="Resolve a shared file by name or URL")
    view.add_argument("target")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    server = args.server.rstrip("/")

    if args.command == "upload":
        return asyncio.run(run_upload(server, args.files, args.max_files))
    return asyncio.run(run_view(server, args.target))
