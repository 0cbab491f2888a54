from pathlib import Path
from typing import Sequence

from splicer.core.errors import ConcatenationFailed


def escape_concat_path(path: Path) -> str:
    """
    Escapes a path for a `file '<path>'` directive of the concat demuxer.

    Single quotes close the quoted string, so each one becomes '\\''
    (close, escaped quote, reopen). CR/LF would start a new directive and
    are rejected outright.
    """
    path_str = Path(path).as_posix()
    if "\n" in path_str or "\r" in path_str:
        raise ConcatenationFailed(f"Path contains newline characters: {path_str!r}")
    return path_str.replace("'", "'\\''")


def render_manifest(paths: Sequence[Path]) -> str:
    return "".join(f"file '{escape_concat_path(p)}'\n" for p in paths)


def write_manifest(paths: Sequence[Path], manifest_path: Path) -> Path:
    """
    Writes the ordered list of segment files.
    Every entry must already exist and be non-empty.
    """
    if not paths:
        raise ConcatenationFailed("No segment files to concatenate")

    for index, p in enumerate(paths):
        p = Path(p)
        if not p.is_file():
            raise ConcatenationFailed(f"Segment file {index} is missing: {p}")
        if p.stat().st_size == 0:
            raise ConcatenationFailed(f"Segment file {index} is empty: {p}")

    manifest_path.write_text(render_manifest([Path(p).resolve() for p in paths]), encoding="utf-8")
    return manifest_path
