import pytest

from splicer.core.common.enums import JobStatus, SourceKind
from splicer.core.errors import ValidationError
from splicer.core.jobs.models import Job, SourceReference
from splicer.core.shared_types import Segment


def make_job():
    return Job(
        source=SourceReference.url("https://example.com/video.mp4"),
        segments=[Segment(0, 10), Segment(20, 30)],
    )


def test_job_lifecycle_success():
    job = make_job()
    assert job.status == JobStatus.PENDING

    job.start()
    assert job.status == JobStatus.RUNNING
    assert job.started_at is not None

    assert job.succeed() is True
    assert job.status == JobStatus.SUCCEEDED
    assert job.is_terminal
    assert job.total_duration == 20


def test_terminal_transition_happens_once():
    """
    The first terminal transition wins; later ones are ignored.
    """
    job = make_job()
    job.start()

    assert job.fail("Segment 1 extraction failed") is True
    assert job.succeed() is False
    assert job.fail("something else") is False

    assert job.status == JobStatus.FAILED
    assert job.error == "Segment 1 extraction failed"


def test_job_cannot_start_twice():
    job = make_job()
    job.start()
    with pytest.raises(RuntimeError):
        job.start()


def test_job_ids_are_unique():
    ids = {make_job().id for _ in range(500)}
    assert len(ids) == 500


def test_source_reference_constructors(tmp_path):
    upload = SourceReference.upload(tmp_path / "x.mov", "holiday.mov")
    assert upload.kind == SourceKind.UPLOAD
    assert upload.original_filename == "holiday.mov"

    remote = SourceReference.url("https://cdn.example.com/a.mp4")
    assert remote.kind == SourceKind.URL
    assert remote.location == "https://cdn.example.com/a.mp4"


@pytest.mark.parametrize("start,end", [(5, 5), (10, 3), (-1, 4)])
def test_segment_rejects_non_positive_duration(start, end):
    with pytest.raises(ValidationError):
        Segment(start, end)


def test_segment_duration():
    assert Segment(3725, 3730).duration == 5
