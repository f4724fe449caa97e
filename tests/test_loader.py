import asyncio
import os

import aiohttp
import pytest
from bs4 import BeautifulSoup

from page_loader import PageLoader, load_page
from page_loader.loader import LoadState
from page_loader.loader.errors import PageLoaderError, ErrorKind
from page_loader.utils.paths import (
    derive_base_name,
    derive_document_file_name,
    derive_resources_dir_name,
)


PAGE_HTML = """<html>
<head>
  <link rel="stylesheet" href="/style.css">
  <link rel="canonical" href="/page">
  <script src="https://cdn.example.org/lib.js"></script>
</head>
<body>
  <img src="/image.png">
  <script src="/script.js"></script>
</body>
</html>"""


def _load(site, output_dir, **options):
    async def scenario():
        async with site.serve():
            loader = PageLoader(**options)
            result = await loader.load(site.url("/page"), str(output_dir))
            return site.url("/page"), loader, result

    return asyncio.run(scenario())


def _host_base(page_url):
    return derive_base_name(page_url)[:-len("-page")]


def _serve_all(site):
    site.add("/page", PAGE_HTML)
    site.add("/style.css", "body { color: red; }", content_type="text/css")
    site.add("/image.png", b"\x89PNG\r\n\x1a\n\x00binary", content_type="image/png")
    site.add("/script.js", "console.log(1);", content_type="application/javascript")


def test_load_saves_page_and_resources(site, tmp_path):
    _serve_all(site)

    page_url, loader, result = _load(site, tmp_path)

    host = _host_base(page_url)
    dir_name = derive_resources_dir_name(page_url)
    html_path = tmp_path / derive_document_file_name(page_url)

    assert result.html_file_path == str(html_path)
    assert os.path.isabs(result.html_file_path)
    assert loader.state is LoadState.DONE

    soup = BeautifulSoup(html_path.read_text(encoding="utf-8"), "html.parser")
    assert soup.find("link", rel="stylesheet")["href"] == f"{dir_name}/{host}-style.css"
    assert soup.find("link", rel="canonical")["href"] == f"{dir_name}/{host}-page.html"
    assert soup.img["src"] == f"{dir_name}/{host}-image.png"
    scripts = [s["src"] for s in soup.find_all("script")]
    assert scripts == ["https://cdn.example.org/lib.js", f"{dir_name}/{host}-script.js"]

    files = sorted(os.listdir(tmp_path / dir_name))
    assert files == sorted([
        f"{host}-style.css",
        f"{host}-page.html",
        f"{host}-image.png",
        f"{host}-script.js",
    ])
    assert (tmp_path / dir_name / f"{host}-image.png").read_bytes() == b"\x89PNG\r\n\x1a\n\x00binary"
    assert (tmp_path / dir_name / f"{host}-page.html").read_text(encoding="utf-8") == PAGE_HTML


def test_load_keeps_failed_resource_reference(site, tmp_path):
    _serve_all(site)
    site.add("/style.css", "Not Found", status=404)

    page_url, _, result = _load(site, tmp_path)

    dir_name = derive_resources_dir_name(page_url)
    soup = BeautifulSoup(open(result.html_file_path, encoding="utf-8").read(), "html.parser")
    assert soup.find("link", rel="stylesheet")["href"] == "/style.css"
    assert soup.img["src"].startswith(f"{dir_name}/")

    assert len(os.listdir(tmp_path / dir_name)) == 3
    assert len(result.failures) == 1
    assert result.failures[0].status == 404


def test_load_page_without_resources(site, tmp_path):
    html = "<html><head><title>Empty</title></head><body></body></html>"
    site.add("/page", html)

    page_url, _, result = _load(site, tmp_path)

    assert os.listdir(tmp_path) == [derive_document_file_name(page_url)]
    assert result.resources_dir is None
    with open(result.html_file_path, encoding="utf-8") as f:
        assert f.read() == html


def test_load_never_fetches_external_resources(site, tmp_path):
    site.add("/page", '<img src="http://localhost:1/x.png"><img src="/broken.png">')

    _, _, result = _load(site, tmp_path)

    assert site.hits["/broken.png"] == 1
    assert len(result.failures) == 1
    with open(result.html_file_path, encoding="utf-8") as f:
        content = f.read()
    assert 'src="http://localhost:1/x.png"' in content
    assert 'src="/broken.png"' in content


def test_load_fails_on_page_404_without_writing(site, tmp_path):
    async def scenario():
        async with site.serve():
            loader = PageLoader()
            try:
                await loader.load(site.url("/page"), str(tmp_path))
            finally:
                assert loader.state is LoadState.FAILED

    with pytest.raises(PageLoaderError) as excinfo:
        asyncio.run(scenario())

    error = excinfo.value
    assert error.kind is ErrorKind.DOCUMENT_FETCH_FAILED
    assert error.message == "Failed to load page: 404 Not Found"
    assert list(tmp_path.iterdir()) == []


@pytest.mark.parametrize("url", ["not-a-url", "ftp://example.com", "example.com", "http://", ""])
def test_load_rejects_invalid_url(url, tmp_path):
    with pytest.raises(PageLoaderError) as excinfo:
        asyncio.run(PageLoader().load(url, str(tmp_path)))

    assert excinfo.value.kind is ErrorKind.INVALID_INPUT
    assert "Invalid URL" in excinfo.value.message


def test_load_missing_output_dir_makes_no_request(site, tmp_path):
    site.add("/page", PAGE_HTML)
    missing = tmp_path / "missing"

    with pytest.raises(PageLoaderError) as excinfo:
        _load(site, missing)

    assert excinfo.value.kind is ErrorKind.INVALID_OUTPUT_TARGET
    assert excinfo.value.cause == "ENOENT"
    assert excinfo.value.message == f"Output directory does not exist: {missing}"
    assert sum(site.hits.values()) == 0


def test_load_output_path_is_a_file(site, tmp_path):
    target = tmp_path / "file.txt"
    target.write_text("x")

    with pytest.raises(PageLoaderError) as excinfo:
        _load(site, target)

    assert excinfo.value.kind is ErrorKind.INVALID_OUTPUT_TARGET
    assert excinfo.value.cause == "ENOTDIR"


def test_load_output_dir_not_writable(site, tmp_path, monkeypatch):
    monkeypatch.setattr(os, "access", lambda *args, **kwargs: False)

    with pytest.raises(PageLoaderError) as excinfo:
        _load(site, tmp_path)

    assert excinfo.value.kind is ErrorKind.INVALID_OUTPUT_TARGET
    assert excinfo.value.cause == "EACCES"
    assert sum(site.hits.values()) == 0


def test_load_fails_when_document_cannot_be_written(site, tmp_path):
    site.add("/page", '<img src="/image.png">')
    site.add("/image.png", b"img", content_type="image/png")

    async def scenario():
        async with site.serve():
            page_url = site.url("/page")
            (tmp_path / derive_document_file_name(page_url)).mkdir()
            await PageLoader().load(page_url, str(tmp_path))

    with pytest.raises(PageLoaderError) as excinfo:
        asyncio.run(scenario())

    assert excinfo.value.kind is ErrorKind.PERSIST_FAILED
    assert "Failed to save HTML file" in excinfo.value.message
    # Downloaded resources are left in place
    assert len([p for p in tmp_path.iterdir() if p.name.endswith("_files")]) == 1


def test_load_reports_events_in_phase_order(site, tmp_path):
    _serve_all(site)
    events = []

    _load(site, tmp_path, on_event=events.append)

    names = [e.name for e in events]
    assert names[:3] == ["validated", "document_fetched", "resources_found"]
    assert names[-1] == "document_saved"
    assert names.count("resource_saved") == 4


def test_load_uses_injected_session(site, tmp_path):
    site.add("/page", "<p>plain</p>")

    async def scenario():
        async with site.serve(), aiohttp.ClientSession() as session:
            result = await PageLoader(session=session).load(site.url("/page"), str(tmp_path))
            assert not session.closed
            return result

    result = asyncio.run(scenario())

    assert os.path.exists(result.html_file_path)


def test_load_page_returns_path(site, tmp_path):
    site.add("/page", "<p>plain</p>")

    async def scenario():
        async with site.serve():
            return site.url("/page"), await load_page(site.url("/page"), str(tmp_path))

    page_url, path = asyncio.run(scenario())

    assert path == str(tmp_path / derive_document_file_name(page_url))


def test_load_unexpected_error_marks_state_failed(site, tmp_path, monkeypatch):
    async def broken_fetch(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr("page_loader.loader.loader.fetch_document", broken_fetch)
    loader = PageLoader()

    async def scenario():
        async with site.serve():
            await loader.load(site.url("/page"), str(tmp_path))

    with pytest.raises(RuntimeError):
        asyncio.run(scenario())

    assert loader.state is LoadState.FAILED
    assert list(tmp_path.iterdir()) == []


def test_load_page_with_unknown_charset(site, tmp_path):
    site.add(
        "/page",
        "<html><body><p>Привет</p></body></html>",
        headers={"Content-Type": "text/html; charset=utf8mb4"},
    )

    page_url, loader, result = _load(site, tmp_path)

    assert loader.state is LoadState.DONE
    with open(result.html_file_path, encoding="utf-8") as f:
        assert "Привет" in f.read()
