"""Input document loader — one composition job per document.

Documents are YAML or JSON (JSON parses as YAML). Field names follow the
upstream service that produces them; English aliases are accepted too.

Input document schema:
  id: "job1"
  video_principal: "<drive id or local .mp4>"
  logo_id: "<ref>"
  rodape_id: "<ref>"            # footer clip / graphic
  video_inicial: "<ref>"        # intro
  video_miraplay: "<ref>"       # mid-roll
  video_final: "<ref>"          # outro
  videos_extras: ["<ref>", ...] # optional
  rodape_texto: "Footer text"   # optional, rendered to a banner
  overlay_entry: 360            # optional, seconds
  stream_url: "rtmp://..."      # optional
  profile: {crf: 20}            # optional encoding overrides
  paths:                        # optional ${name} substitutions
    clips: "/data/clips"
"""

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .common import check_job_id, resolve_path_vars
from .errors import ValidationError
from .profiles import TARGET_PROFILE, merge_profile

DEFAULT_OVERLAY_ENTRY = 360.0

# canonical name -> accepted document keys, first match wins
FIELD_ALIASES = {
    "id": ("id",),
    "principal": ("video_principal", "principal"),
    "logo": ("logo_id", "logo"),
    "footer": ("rodape_id", "footer"),
    "intro": ("video_inicial", "intro"),
    "mid": ("video_miraplay", "mid"),
    "outro": ("video_final", "outro"),
    "extras": ("videos_extras", "extras"),
    "footer_text": ("rodape_texto", "footer_text"),
    "overlay_entry": ("overlay_entry",),
    "stream_url": ("stream_url",),
    "profile": ("profile",),
}

REQUIRED_FIELDS = ("id", "principal", "logo", "footer", "intro", "mid", "outro")


@dataclass
class PipelineJob:
    """A validated composition job."""

    id: str
    principal: str
    logo: str
    footer: str
    intro: str
    mid: str
    outro: str
    extras: list[str] = field(default_factory=list)
    footer_text: str | None = None
    overlay_entry: float = DEFAULT_OVERLAY_ENTRY
    stream_url: str | None = None
    profile: dict = field(default_factory=lambda: dict(TARGET_PROFILE))

    @property
    def segment_refs(self) -> list[str]:
        """References joined after the principal halves, in playback order."""
        return [self.intro, self.mid, *self.extras, self.outro]


def _lookup(document: dict, name: str):
    for key in FIELD_ALIASES[name]:
        if key in document:
            return document[key]
    return None


def _present(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def parse_job(document: dict) -> PipelineJob:
    """Validate a raw document and build a PipelineJob.

    Every required field must be present and non-empty; all missing fields
    are reported together.

    Raises:
        ValidationError: Missing required fields (or not a mapping).
        ValueError: Malformed optional fields, or an id that isn't a plain
            file name part.
    """
    if not isinstance(document, dict):
        raise ValidationError(list(REQUIRED_FIELDS))

    missing = [
        FIELD_ALIASES[name][0]
        for name in REQUIRED_FIELDS
        if not _present(_lookup(document, name))
    ]
    if missing:
        raise ValidationError(missing)

    paths = document.get("paths") or {}

    def ref(value) -> str:
        return resolve_path_vars(str(value).strip(), paths)

    extras = _lookup(document, "extras") or []
    if not isinstance(extras, list):
        raise ValueError(f"videos_extras must be a list, got {type(extras).__name__}")

    entry = _lookup(document, "overlay_entry")
    if entry is None:
        entry = DEFAULT_OVERLAY_ENTRY
    entry = float(entry)
    if entry < 0:
        raise ValueError(f"overlay_entry must be >= 0, got {entry}")

    footer_text = _lookup(document, "footer_text")
    stream_url = _lookup(document, "stream_url")

    return PipelineJob(
        id=check_job_id(str(_lookup(document, "id")).strip()),
        principal=ref(_lookup(document, "principal")),
        logo=ref(_lookup(document, "logo")),
        footer=ref(_lookup(document, "footer")),
        intro=ref(_lookup(document, "intro")),
        mid=ref(_lookup(document, "mid")),
        outro=ref(_lookup(document, "outro")),
        # empty extras are skipped later, keep positions as given
        extras=[ref(e) if _present(e) else "" for e in extras],
        footer_text=str(footer_text) if _present(footer_text) else None,
        overlay_entry=entry,
        stream_url=str(stream_url).strip() if _present(stream_url) else None,
        profile=merge_profile(TARGET_PROFILE, _lookup(document, "profile")),
    )


def load_job_document(path: str | Path) -> dict:
    """Read a YAML/JSON input document.

    Raises:
        FileNotFoundError: Document doesn't exist.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Input document not found: {path}")
    with open(p, encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    return raw if raw is not None else {}


def load_stream_info(path: str | Path) -> dict:
    """Read stream_info.json written by the compose step.

    Returns:
        Dict with 'stream_url' and 'id' ('id' falls back to 'video_id').

    Raises:
        FileNotFoundError: File missing.
        ValueError: Not parseable, or stream_url / id missing.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Stream info not found: {path}")
    with open(p, encoding="utf-8") as f:
        try:
            info = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid stream info file {path}: {exc}") from exc

    if not isinstance(info, dict):
        raise ValueError(f"Invalid stream info file {path}: expected a mapping")
    stream_url = info.get("stream_url")
    live_id = info.get("id") or info.get("video_id")
    if not stream_url:
        raise ValueError(f"Stream info {path}: missing 'stream_url'")
    if not live_id:
        raise ValueError(f"Stream info {path}: missing 'id'")
    return {"stream_url": str(stream_url), "id": str(live_id)}
