from typing import NamedTuple, Optional


class HttpResponse(NamedTuple):
    """Response from HTTP fetch operation."""
    status_code: int
    text: str
    content_type: Optional[str] = None
    final_url: Optional[str] = None
    requested_url: Optional[str] = None
    last_modified: Optional[str] = None
    content_length: Optional[str] = None

    @property
    def redirected(self) -> bool:
        """True when the response was served from a different URL than requested."""
        if not self.final_url or not self.requested_url:
            return False
        return self.final_url != self.requested_url
