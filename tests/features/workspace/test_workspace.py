import os
import time

import pytest

from splicer.core.errors import WorkspaceAllocationError
from splicer.features.workspace.data.local_fs import LocalWorkspaceManager


def test_allocate_creates_unique_directory(scratch_root):
    manager = LocalWorkspaceManager(scratch_root)

    a = manager.allocate("job-a")
    b = manager.allocate("job-b")

    assert a.path == scratch_root / "job-a"
    assert a.path.is_dir()
    assert b.path.is_dir()
    assert a.path != b.path


def test_allocate_refuses_to_share_a_directory(scratch_root):
    manager = LocalWorkspaceManager(scratch_root)
    manager.allocate("job-a")

    with pytest.raises(WorkspaceAllocationError):
        manager.allocate("job-a")


def test_allocate_fails_when_root_is_unusable(tmp_path):
    # A regular file where the scratch root should be
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")
    manager = LocalWorkspaceManager(blocker)

    with pytest.raises(WorkspaceAllocationError):
        manager.allocate("job-a")


def test_release_removes_everything(scratch_root, observer):
    manager = LocalWorkspaceManager(scratch_root, observer=observer)
    ws = manager.allocate("job-a")
    ws.segment_path(0).write_bytes(b"part")
    (ws.path / "nested").mkdir()
    (ws.path / "nested" / "file.bin").write_bytes(b"x")

    assert manager.release(ws) is True
    assert not ws.path.exists()
    assert observer.names("job-a") == ["cleanup_completed"]


def test_release_is_idempotent(scratch_root, observer):
    manager = LocalWorkspaceManager(scratch_root, observer=observer)
    ws = manager.allocate("job-a")

    assert manager.release(ws) is True
    assert manager.release(ws) is True
    assert manager.release(ws) is True

    # Only the first call does any work
    assert observer.names("job-a") == ["cleanup_completed"]


def test_release_of_already_deleted_directory(scratch_root):
    manager = LocalWorkspaceManager(scratch_root)
    ws = manager.allocate("job-a")
    ws.path.rmdir()

    assert manager.release(ws) is True


def test_release_failure_is_reported_not_raised(scratch_root, observer, monkeypatch):
    manager = LocalWorkspaceManager(scratch_root, observer=observer)
    ws = manager.allocate("job-a")

    def broken_rmtree(path):
        raise PermissionError("Operation not permitted")

    monkeypatch.setattr("splicer.features.workspace.data.local_fs.shutil.rmtree", broken_rmtree)

    assert manager.release(ws) is False
    assert observer.names("job-a") == ["cleanup_failed"]

    # Still there, so a repeated release must not claim success
    assert manager.release(ws) is False
    assert ws.path.exists()
    assert observer.names("job-a") == ["cleanup_failed"]


def test_release_touches_only_its_own_workspace(scratch_root):
    manager = LocalWorkspaceManager(scratch_root)
    mine = manager.allocate("job-a")
    other = manager.allocate("job-b")
    other.segment_path(0).write_bytes(b"keep me")

    manager.release(mine)

    assert other.segment_path(0).read_bytes() == b"keep me"


def test_workspace_paths(scratch_root):
    ws = LocalWorkspaceManager(scratch_root).allocate("job-a")
    assert ws.segment_path(2).name == "part_2.mp4"
    assert ws.segment_path(2, ".webm").name == "part_2.webm"
    assert ws.manifest_path.name == "concat.txt"
    assert ws.final_path().name == "final.mp4"
    assert ws.input_path(".mov").name == "input.mov"
    assert ws.input_path("").name == "input.mp4"
    assert ws.owns(ws.segment_path(0))
    assert not ws.owns(scratch_root / "job-b" / "part_0.mp4")


def test_sweep_stale_removes_only_old_workspaces(scratch_root):
    manager = LocalWorkspaceManager(scratch_root)
    old = manager.allocate("crashed-job")
    fresh = manager.allocate("running-job")

    an_hour_ago = time.time() - 3600
    os.utime(old.path, (an_hour_ago, an_hour_ago))

    removed = manager.sweep_stale(max_age_seconds=600)

    assert removed == 1
    assert not old.path.exists()
    assert fresh.path.exists()


def test_sweep_stale_without_root(tmp_path):
    manager = LocalWorkspaceManager(tmp_path / "missing")
    assert manager.sweep_stale(max_age_seconds=0) == 0
