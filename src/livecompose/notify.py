"""Status notifications to the remote coordinator.

The coordinator accepts ``{"id", "status", "message"?}`` as a JSON POST.
Its response is printed but not interpreted. Delivery failures raise
NotifyError, which callers report and otherwise ignore.
"""

import sys
from dataclasses import dataclass

import requests

from .errors import NotifyError

PHASES = ("started", "finished", "error")
TIMEOUT = 60


@dataclass(frozen=True)
class StatusEvent:
    job_id: str
    phase: str
    message: str | None = None

    def __post_init__(self):
        if self.phase not in PHASES:
            raise ValueError(f"Unknown status phase: '{self.phase}'. Valid: {list(PHASES)}")

    def to_payload(self) -> dict:
        payload = {"id": self.job_id, "status": self.phase}
        if self.message is not None:
            payload["message"] = self.message
        return payload


class StatusNotifier:
    """POSTs status events to a fixed coordinator URL."""

    def __init__(self, url: str, session: requests.Session | None = None, timeout: float = TIMEOUT):
        if not url:
            raise ValueError("Status URL is required")
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def send(self, event: StatusEvent) -> requests.Response:
        """Deliver one event.

        Raises:
            NotifyError: The request could not be completed.
        """
        print(f"  NOTIFY {event.phase} ({event.job_id}) -> {self.url}", flush=True)
        try:
            response = self.session.post(self.url, json=event.to_payload(), timeout=self.timeout)
        except requests.RequestException as exc:
            raise NotifyError(f"Could not deliver '{event.phase}' status: {exc}") from exc

        stream = sys.stdout if response.ok else sys.stderr
        print(f"  NOTIFY response {response.status_code}: {response.text[:500]}", file=stream, flush=True)
        return response
