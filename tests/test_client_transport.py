import asyncio

import httpx
import pytest

from fileshare.client.batch import FileBatch, PendingFile
from fileshare.client.transport import (
    FileUploader,
    UploadState,
    UploadTask,
    UploadTransport,
    fetch_csrf_token,
)
from fileshare.client.viewer import SharedFileViewer, filename_from_share
from fileshare.core.filetypes import FileKind

BASE = "http://testserver"


class Recorder:
    def __init__(self):
        self.notices = []

    def __call__(self, notice):
        self.notices.append(notice)

    @property
    def messages(self):
        return [n.message for n in self.notices]


def asgi_client(app):
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=BASE)


def png_file(png_bytes, name="photo.png"):
    return PendingFile(name=name, content_type="image/png", data=png_bytes)


def test_round_trip_upload_then_view(app, png_bytes):
    notify = Recorder()
    progress = {}

    def on_progress(task):
        progress.setdefault(task.key, []).append(task.progress)

    async def scenario():
        async with asgi_client(app) as client:
            token = await fetch_csrf_token(client, BASE)
            with FileBatch(notify=notify) as batch:
                batch.add([
                    png_file(png_bytes),
                    PendingFile(name="doc.pdf", content_type="application/pdf", data=b"%PDF-1.4" * 40000),
                ])
                uploader = FileUploader(
                    UploadTransport(client, BASE, chunk_size=4096), batch, token,
                    notify=notify, on_progress=on_progress,
                )
                tasks = await uploader.upload()
                urls = uploader.shareable_urls
            view = await SharedFileViewer(client, BASE).open(tasks[0].shareable_url)
            return tasks, urls, view

    tasks, urls, view = asyncio.run(scenario())

    assert [t.state for t in tasks] == [UploadState.COMPLETED, UploadState.COMPLETED]
    assert all(t.progress == 100 for t in tasks)
    assert tasks[0].shareable_url == f"{BASE}/shared/{tasks[0].unique_filename}"
    assert tasks[0].unique_filename.endswith(".png")
    assert set(urls) == {t.key for t in tasks}

    for series in progress.values():
        assert series == sorted(series)
        assert series[-1] == 100
    assert len(progress[tasks[1].key]) > 2

    assert notify.messages.count("File uploaded successfully") == 2
    assert notify.messages[-1] == "Successfully uploaded 2 files"

    assert view.found
    assert view.kind is FileKind.IMAGE
    assert view.file_url == f"{BASE}/uploads/{tasks[0].unique_filename}"


def test_one_failure_does_not_block_others(png_bytes):
    def handler(request):
        body = request.content
        if b"bad.png" in body:
            return httpx.Response(400, json={"error": "File type not allowed. Allowed types: JPEG, PNG, PDF"})
        if b"flaky.png" in body:
            raise httpx.ConnectError("connection refused", request=request)
        assert request.headers["X-CSRF-Token"] == "tok"
        assert b'name="csrfToken"\r\n\r\ntok' in body
        return httpx.Response(200, json={
            "fileUrl": f"{BASE}/uploads/u.png",
            "shareableUrl": f"{BASE}/shared/u.png",
            "uniqueFilename": "u.png",
        })

    notify = Recorder()

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            batch = FileBatch(notify=notify)
            batch.add([png_file(png_bytes, "good.png"), png_file(png_bytes, "bad.png"), png_file(png_bytes, "flaky.png")])
            uploader = FileUploader(UploadTransport(client, BASE), batch, "tok", notify=notify)
            tasks = await uploader.upload()
            batch.close()
            return tasks

    good, bad, flaky = asyncio.run(scenario())

    assert good.state is UploadState.COMPLETED
    assert good.shareable_url == f"{BASE}/shared/u.png"
    assert bad.state is UploadState.FAILED
    assert bad.error == "Upload failed (400)"
    assert flaky.state is UploadState.FAILED
    assert flaky.error == "Network error"
    assert not any(m.startswith("Successfully uploaded") for m in notify.messages)


def test_any_matching_token_pair_is_accepted(app, png_bytes):
    async def scenario():
        async with asgi_client(app) as client:
            batch = FileBatch()
            batch.add([png_file(png_bytes)])
            return await FileUploader(UploadTransport(client, BASE), batch, "not-from-the-page").upload()

    # Header and field still match, so the double-submit check passes
    (task,) = asyncio.run(scenario())
    assert task.state is UploadState.COMPLETED


def test_empty_batch_sends_nothing():
    notify = Recorder()

    def handler(request):
        raise AssertionError("no request expected")

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await FileUploader(UploadTransport(client, BASE), FileBatch(), "tok", notify=notify).upload()

    assert asyncio.run(scenario()) == []
    assert notify.messages == ["Please select at least one file to upload"]


def test_failed_task_cannot_complete():
    task = UploadTask(key="k", file_name="a.png")
    task.start()
    task.fail("Network error")

    with pytest.raises(ValueError):
        task.complete({"shareableUrl": "x"})
    assert task.state is UploadState.FAILED


def test_viewer_reports_missing_and_unreachable(app):
    def broken(request):
        raise httpx.ConnectError("down", request=request)

    async def scenario():
        async with asgi_client(app) as client:
            missing = await SharedFileViewer(client, BASE).open("nothing-here.pdf")
        async with httpx.AsyncClient(transport=httpx.MockTransport(broken)) as client:
            unreachable = await SharedFileViewer(client, BASE).open("x.png")
        return missing, unreachable

    missing, unreachable = asyncio.run(scenario())

    assert not missing.found
    assert missing.error == "File not found"
    assert missing.kind is FileKind.PDF
    assert unreachable.error == "Could not access the file"


def test_filename_from_share():
    assert filename_from_share("abc.png") == "abc.png"
    assert filename_from_share("https://example.com/shared/abc.png") == "abc.png"
    assert filename_from_share("http://h/uploads/abc%20d.pdf/") == "abc d.pdf"
