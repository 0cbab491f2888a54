from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, Optional

# Called exactly once per Job when delivery ends. None = delivered, str = failure reason.
Finalizer = Callable[[Optional[str]], None]


@dataclass
class DeliveryResult:
    """
    What the request boundary sends back: either a byte stream or a URL.
    """
    job_id: str
    media_type: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[Iterator[bytes]] = None
    url: Optional[str] = None
    size_bytes: int = 0

    @property
    def is_stream(self) -> bool:
        return self.body is not None

    def close(self) -> None:
        """Abandons the stream (if any). Safe to call after it finished."""
        close = getattr(self.body, "close", None)
        if close is not None:
            close()
