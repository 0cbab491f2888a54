from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class Workspace:
    """
    A scratch directory exclusively owned by one Job.
    All intermediate and final files of the Job live inside it.
    """
    job_id: str
    path: Path
    released: bool = field(default=False)

    @property
    def manifest_path(self) -> Path:
        return self.path / "concat.txt"

    def input_path(self, suffix: str = ".mp4") -> Path:
        return self.path / f"input{suffix or '.mp4'}"

    def segment_path(self, index: int, suffix: str = ".mp4") -> Path:
        return self.path / f"part_{index}{suffix}"

    def final_path(self, suffix: str = ".mp4") -> Path:
        return self.path / f"final{suffix}"

    def owns(self, path: Path) -> bool:
        try:
            Path(path).resolve().relative_to(self.path.resolve())
            return True
        except ValueError:
            return False
