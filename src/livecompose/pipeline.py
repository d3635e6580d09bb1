"""Composition pipeline — from an input document to one finished asset.

Stages run strictly in order, each consuming the previous stage's file:

  VALIDATE          check required fields; no I/O before this passes
  ACQUIRE           footer, logo, principal video (+ footer text banner)
  SPLIT             cut the principal video in half (stream copy)
  REENCODE          normalize both halves to the target profile
  OVERLAY_STATIC    footer graphic (+ text banner) + logo on both halves
  OVERLAY_ANIMATED  sliding footer clip on both halves
  ACQUIRE_SEGMENTS  intro, mid-roll, extras, outro (download + re-encode)
  CONCATENATE       lossless join of every segment, in order
  PERSIST_MANIFEST  write stream_info.json for the broadcast step
  DONE

Any failure moves to FAILED. Either way the ledger is swept exactly once
and the error (if any) propagates to the caller. Nothing is retried.

Segment references that name an existing local .mp4 file are used as-is:
no download, no re-encode, never deleted. A reference that is both a
local filename and a valid remote id resolves to the local file.
"""

import enum
import json
import sys
from dataclasses import dataclass
from pathlib import Path

from .common import job_path
from .concat import concatenate
from .errors import FetchError
from .job import PipelineJob, parse_job
from .ledger import TempLedger
from .overlays import compose_animated_overlay, compose_static_footer_and_logo
from .transforms import cut_at, probe_duration, reencode, render_text_image

LOCAL_SEGMENT_SUFFIXES = {".mp4"}

DEFAULT_OUTPUT_NAME = "video_final_completo.mp4"
DEFAULT_STREAM_INFO_NAME = "stream_info.json"


class Stage(enum.Enum):
    VALIDATE = "validate"
    ACQUIRE = "acquire"
    SPLIT = "split"
    REENCODE = "reencode"
    OVERLAY_STATIC = "overlay-static"
    OVERLAY_ANIMATED = "overlay-animated"
    ACQUIRE_SEGMENTS = "acquire-segments"
    CONCATENATE = "concatenate"
    PERSIST_MANIFEST = "persist-manifest"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class Segment:
    """One unit of the final composite, in playback order.

    prefinal segments are local files accepted as-is (never re-encoded).
    """

    path: Path
    prefinal: bool = False


def local_segment(reference: str) -> Path | None:
    """Return the path if *reference* is an existing local segment file."""
    p = Path(reference)
    if p.suffix.lower() in LOCAL_SEGMENT_SUFFIXES and p.is_file():
        return p
    return None


def write_stream_info(path: str | Path, stream_url: str, job_id: str) -> Path:
    """Write the hand-off file read by the broadcast step."""
    path = Path(path)
    info = {"stream_url": stream_url, "id": job_id, "video_id": job_id}
    with open(path, "w", encoding="utf-8") as f:
        json.dump(info, f, indent=2)
    return path


class CompositionPipeline:
    """Runs one composition job. One instance per job; not reusable.

    Args:
        fetcher: Acquisition collaborator (``fetch(reference, dest) -> Path``).
        work_dir: Where temp files go. Names are prefixed with the job id.
        output: Final asset path (default: work_dir/video_final_completo.mp4).
        stream_info_path: Hand-off file path (default: work_dir/stream_info.json).
    """

    def __init__(
        self,
        fetcher,
        work_dir: str | Path = ".",
        output: str | Path | None = None,
        stream_info_path: str | Path | None = None,
    ):
        self.fetcher = fetcher
        self.work_dir = Path(work_dir)
        self.output = Path(output) if output else self.work_dir / DEFAULT_OUTPUT_NAME
        self.stream_info_path = (
            Path(stream_info_path) if stream_info_path
            else self.work_dir / DEFAULT_STREAM_INFO_NAME
        )
        self.ledger = TempLedger()
        self.stages: list[Stage] = []
        self.job: PipelineJob | None = None
        self.segments: list[Segment] = []

    @property
    def stage(self) -> Stage | None:
        return self.stages[-1] if self.stages else None

    def _enter(self, stage: Stage):
        self.stages.append(stage)
        print(f"[{stage.value}]", flush=True)

    def run(self, document: dict) -> Path:
        """Compose the final asset described by *document*.

        Returns:
            Path of the final composed file.

        Raises:
            ValidationError: Required fields missing (no I/O happened).
            FetchError, ProbeError, TransformError: A stage failed; temp
                files have been swept.
        """
        if self.stages:
            raise RuntimeError("CompositionPipeline instances run once")
        try:
            self._enter(Stage.VALIDATE)
            self.job = job = parse_job(document)
            print(f"Composing job {job.id}", flush=True)
            self.work_dir.mkdir(parents=True, exist_ok=True)
            return self._compose(job)
        except Exception as exc:
            failed_at = self.stage
            self.stages.append(Stage.FAILED)
            print(f"[failed] during {failed_at.value}: {exc}", file=sys.stderr, flush=True)
            raise
        finally:
            self.ledger.sweep()

    # ── stages ───────────────────────────────────────────────────

    def _tmp(self, name: str) -> Path:
        return job_path(self.work_dir, self.job.id, name)

    def _acquire(self, reference: str, name: str) -> Path:
        local = local_segment(reference)
        if local is not None:
            print(f"  SKIP   {reference} (local file, used as-is)", flush=True)
            return local
        dest = self.ledger.register(self._tmp(name), "acquire")
        try:
            return Path(self.fetcher.fetch(reference, dest))
        except FetchError:
            raise
        except Exception as exc:
            raise FetchError(f"Could not acquire {reference}: {exc}") from exc

    def _compose(self, job: PipelineJob) -> Path:
        profile = job.profile

        self._enter(Stage.ACQUIRE)
        footer = self._acquire(job.footer, "rodape")
        logo = self._acquire(job.logo, "logo.png")
        principal = self._acquire(job.principal, "principal.mp4")
        banner = None
        if job.footer_text:
            banner = render_text_image(job.footer_text, self._tmp("rodape_texto.png"), self.ledger)

        self._enter(Stage.SPLIT)
        duration = probe_duration(principal)
        half = duration / 2
        print(f"  Duration {duration:.2f}s, splitting at {half:.2f}s", flush=True)
        raw = cut_at(principal, half, self._tmp("parte1_raw.mp4"), self._tmp("parte2_raw.mp4"), self.ledger)

        self._enter(Stage.REENCODE)
        normalized = [
            reencode(part, self._tmp(f"parte{i}_re.mp4"), self.ledger, profile)
            for i, part in enumerate(raw, start=1)
        ]

        self._enter(Stage.OVERLAY_STATIC)
        branded = [
            compose_static_footer_and_logo(
                part, footer, logo, self._tmp(f"parte{i}_logo.mp4"), self.ledger, profile,
                banner_image=banner,
            )
            for i, part in enumerate(normalized, start=1)
        ]

        self._enter(Stage.OVERLAY_ANIMATED)
        finals = [
            compose_animated_overlay(
                part, footer, job.overlay_entry, self._tmp(f"parte{i}_final.mp4"),
                self.ledger, profile,
            )
            for i, part in enumerate(branded, start=1)
        ]

        self._enter(Stage.ACQUIRE_SEGMENTS)
        self.segments = segments = [Segment(p) for p in finals]
        for i, ref in enumerate(job.segment_refs):
            if not ref:
                continue
            local = local_segment(ref)
            if local is not None:
                print(f"  SKIP   {ref} (local file, used as-is)", flush=True)
                segments.append(Segment(local, prefinal=True))
                continue
            downloaded = self._acquire(ref, f"video_{i}_raw.mp4")
            encoded = reencode(downloaded, self._tmp(f"video_{i}.mp4"), self.ledger, profile)
            segments.append(Segment(encoded))

        self._enter(Stage.CONCATENATE)
        concatenate([s.path for s in segments], self.output, self._tmp("list.txt"), self.ledger)

        self._enter(Stage.PERSIST_MANIFEST)
        if job.stream_url:
            write_stream_info(self.stream_info_path, job.stream_url, job.id)
            print(f"  DONE   {self.stream_info_path}", flush=True)

        self._enter(Stage.DONE)
        print(f"\nDone: {self.output}", flush=True)
        return self.output
