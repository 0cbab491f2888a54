import httpx
import pytest

from splicer.core.common.enums import SourceKind
from splicer.core.errors import SourceUnavailable
from splicer.core.jobs.models import SourceReference
from splicer.features.sources.data.http_fetcher import RemoteSourceProvider
from splicer.features.sources.data.upload_provider import UploadSourceProvider
from splicer.features.sources.service.api import CompositeSourceProvider
from splicer.features.workspace.data.local_fs import LocalWorkspaceManager


@pytest.fixture
def workspace(scratch_root):
    return LocalWorkspaceManager(scratch_root).allocate("job-1")


def mock_client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler), follow_redirects=True)


# --- Uploads ---

def test_upload_is_moved_into_workspace(tmp_path, workspace):
    upload = tmp_path / "tmp-upload-123"
    upload.write_bytes(b"video bytes")

    path = UploadSourceProvider().materialize(SourceReference.upload(upload, "Holiday.MOV"), workspace)

    assert path == workspace.path / "input.mov"
    assert path.read_bytes() == b"video bytes"
    assert not upload.exists()


def test_missing_upload(tmp_path, workspace):
    with pytest.raises(SourceUnavailable):
        UploadSourceProvider().materialize(SourceReference.upload(tmp_path / "gone.mp4"), workspace)


def test_empty_upload(tmp_path, workspace):
    upload = tmp_path / "empty.mp4"
    upload.write_bytes(b"")

    with pytest.raises(SourceUnavailable):
        UploadSourceProvider().materialize(SourceReference.upload(upload), workspace)


# --- Remote URLs ---

def test_remote_source_is_downloaded(workspace):
    def handler(request):
        assert request.url.path == "/videos/talk.webm"
        return httpx.Response(200, content=b"remote video bytes")

    provider = RemoteSourceProvider(client=mock_client(handler))
    path = provider.materialize(SourceReference.url("https://cdn.example.com/videos/talk.webm"), workspace)

    assert path == workspace.path / "input.webm"
    assert path.read_bytes() == b"remote video bytes"


def test_remote_redirect_is_followed(workspace):
    def handler(request):
        if request.url.path == "/old.mp4":
            return httpx.Response(302, headers={"Location": "https://cdn.example.com/new.mp4"})
        return httpx.Response(200, content=b"moved")

    provider = RemoteSourceProvider(client=mock_client(handler))
    path = provider.materialize(SourceReference.url("https://cdn.example.com/old.mp4"), workspace)

    assert path.read_bytes() == b"moved"


def test_remote_http_error(workspace):
    provider = RemoteSourceProvider(client=mock_client(lambda request: httpx.Response(404)))

    with pytest.raises(SourceUnavailable) as exc_info:
        provider.materialize(SourceReference.url("https://cdn.example.com/missing.mp4"), workspace)

    assert exc_info.value.status_code == 502
    assert "404" in str(exc_info.value)


def test_remote_transport_error(workspace):
    def handler(request):
        raise httpx.ConnectError("Name or service not known", request=request)

    provider = RemoteSourceProvider(client=mock_client(handler))

    with pytest.raises(SourceUnavailable):
        provider.materialize(SourceReference.url("https://nowhere.invalid/a.mp4"), workspace)


def test_remote_source_too_large(workspace):
    provider = RemoteSourceProvider(
        client=mock_client(lambda request: httpx.Response(200, content=b"x" * 100)),
        max_bytes=10,
        chunk_size=4,
    )

    with pytest.raises(SourceUnavailable) as exc_info:
        provider.materialize(SourceReference.url("https://cdn.example.com/big.mp4"), workspace)

    assert exc_info.value.status_code == 413


def test_remote_empty_body(workspace):
    provider = RemoteSourceProvider(client=mock_client(lambda request: httpx.Response(200, content=b"")))

    with pytest.raises(SourceUnavailable):
        provider.materialize(SourceReference.url("https://cdn.example.com/empty.mp4"), workspace)


@pytest.mark.parametrize("url", ["file:///etc/passwd", "ftp://example.com/a.mp4", "not a url", "https://"])
def test_remote_rejects_unsupported_urls(workspace, url):
    def handler(request):
        raise AssertionError("no request should be made")

    with pytest.raises(SourceUnavailable):
        RemoteSourceProvider(client=mock_client(handler)).materialize(SourceReference.url(url), workspace)


# --- Routing ---

def test_composite_routes_by_kind(tmp_path, workspace):
    upload = tmp_path / "upload.mp4"
    upload.write_bytes(b"uploaded")
    remote = RemoteSourceProvider(client=mock_client(lambda request: httpx.Response(200, content=b"remote")))

    composite = CompositeSourceProvider({
        SourceKind.UPLOAD: UploadSourceProvider(),
        SourceKind.URL: remote,
    })

    assert composite.materialize(SourceReference.upload(upload), workspace).read_bytes() == b"uploaded"


def test_composite_without_provider(workspace):
    composite = CompositeSourceProvider({SourceKind.UPLOAD: UploadSourceProvider()})

    with pytest.raises(SourceUnavailable):
        composite.materialize(SourceReference.url("https://cdn.example.com/a.mp4"), workspace)
