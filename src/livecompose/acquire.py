"""Acquisition — resolve a remote reference to a file on local storage.

Two fetchers share one contract, ``fetch(reference, destination) -> Path``:

  - DriveFetcher: authenticated download through the Drive v3 API with a
    service-account key (read-only scope).
  - LinkFetcher: anonymous download of a shared link, following the
    "download anyway" interstitial Drive shows for large files.

Whatever goes wrong (auth, not found, network) surfaces as FetchError.
The caller registers *destination* in the job ledger before fetching, so
a half-written download is cleaned up with everything else.
"""

import re
from html.parser import HTMLParser
from pathlib import Path
from urllib.parse import urljoin

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

from .errors import FetchError

DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive.readonly"]
DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files/{file_id}"
DRIVE_EXPORT_URL = "https://drive.google.com/uc"
DRIVE_BASE_URL = "https://drive.google.com"

CHUNK_SIZE = 1024 * 256
TIMEOUT = (15, 120)  # connect, read


def extract_file_id(reference: str) -> str:
    """Pull the file id out of a Drive link, or return a bare id as-is.

    Handles ``...?id=<id>&...`` and ``.../file/d/<id>/view`` links.

    Raises:
        FetchError: Looks like a URL but carries no recognizable id.
    """
    match = re.search(r"[?&]id=([^&#]+)", reference)
    if match:
        return match.group(1)
    match = re.search(r"/d/([^/?#]+)", reference)
    if match:
        return match.group(1)
    if "://" in reference:
        raise FetchError(f"No file id found in link: {reference}")
    return reference


def _write_stream(response: requests.Response, destination: Path) -> Path:
    destination.parent.mkdir(parents=True, exist_ok=True)
    with open(destination, "wb") as fh:
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if chunk:
                fh.write(chunk)
    return destination


class Fetcher:
    """Resolves a reference to bytes at *destination*."""

    def fetch(self, reference: str, destination: str | Path) -> Path:
        raise NotImplementedError


class DriveFetcher(Fetcher):
    """Authenticated Drive download using a service-account key file.

    Credentials are loaded on the first fetch, so constructing a fetcher
    for a job that fails validation touches neither disk nor network.
    """

    def __init__(self, keyfile: str | Path, session: requests.Session | None = None):
        self.keyfile = Path(keyfile)
        self._session = session

    def _get_session(self) -> requests.Session:
        if self._session is None:
            print("Authenticating with Google Drive...", flush=True)
            try:
                credentials = service_account.Credentials.from_service_account_file(
                    str(self.keyfile), scopes=DRIVE_SCOPES,
                )
            except (OSError, ValueError) as exc:
                raise FetchError(
                    f"Could not load service account key {self.keyfile}: {exc}"
                ) from exc
            self._session = AuthorizedSession(credentials)
        return self._session

    def fetch(self, reference: str, destination: str | Path) -> Path:
        destination = Path(destination)
        file_id = extract_file_id(reference)
        session = self._get_session()

        print(f"  FETCH  drive:{file_id} -> {destination}", flush=True)
        try:
            with session.get(
                DRIVE_FILES_URL.format(file_id=file_id),
                params={"alt": "media"},
                stream=True,
                timeout=TIMEOUT,
            ) as response:
                response.raise_for_status()
                _write_stream(response, destination)
        except (requests.RequestException, GoogleAuthError) as exc:
            raise FetchError(f"Drive download failed for {file_id}: {exc}") from exc
        return destination


class _ConfirmLinkParser(HTMLParser):
    """Finds the "download anyway" target on Drive's virus-scan page.

    Older pages use ``<a id="uc-download-link" href=...>``; newer ones a
    ``<form id="download-form" action=...>`` with hidden inputs.
    """

    def __init__(self):
        super().__init__()
        self.href = None
        self.form_action = None
        self.form_fields = {}
        self._in_form = False

    def handle_starttag(self, tag, attrs):
        attrs = dict(attrs)
        if tag == "a" and attrs.get("id") == "uc-download-link" and attrs.get("href"):
            self.href = attrs["href"]
        elif tag == "form" and attrs.get("id") == "download-form":
            self.form_action = attrs.get("action")
            self._in_form = True
        elif tag == "input" and self._in_form and attrs.get("name"):
            self.form_fields[attrs["name"]] = attrs.get("value") or ""

    def handle_endtag(self, tag):
        if tag == "form":
            self._in_form = False


def find_confirm_target(html: str) -> tuple[str, dict] | None:
    """Return (url, query params) to follow from a confirmation page, or None."""
    parser = _ConfirmLinkParser()
    parser.feed(html)
    if parser.href:
        return urljoin(DRIVE_BASE_URL, parser.href.replace("&amp;", "&")), {}
    if parser.form_action:
        return urljoin(DRIVE_BASE_URL, parser.form_action), parser.form_fields
    return None


class LinkFetcher(Fetcher):
    """Anonymous download of a shared Drive link."""

    def __init__(self, session: requests.Session | None = None):
        self.session = session or requests.Session()

    def fetch(self, reference: str, destination: str | Path) -> Path:
        destination = Path(destination)
        file_id = extract_file_id(reference)

        print(f"  FETCH  link:{file_id} -> {destination}", flush=True)
        try:
            response = self.session.get(
                DRIVE_EXPORT_URL,
                params={"export": "download", "id": file_id},
                stream=True,
                timeout=TIMEOUT,
            )
            response.raise_for_status()

            if "content-disposition" not in response.headers:
                # Interstitial page instead of the file itself.
                target = find_confirm_target(response.text)
                response.close()
                if target is None:
                    raise FetchError(
                        f"Download confirmation link not found for {file_id}"
                    )
                url, params = target
                response = self.session.get(
                    url, params=params or None, stream=True, timeout=TIMEOUT,
                )
                response.raise_for_status()

            with response:
                _write_stream(response, destination)
        except requests.RequestException as exc:
            raise FetchError(f"Download failed for {file_id}: {exc}") from exc
        return destination
