"""Tests for the input document loader and validation."""

import json

import pytest
import yaml


def _doc(**overrides):
    """Return a minimal valid input document."""
    d = {
        "id": "job1",
        "video_principal": "ref1",
        "logo_id": "ref2",
        "rodape_id": "ref3",
        "video_inicial": "ref4",
        "video_miraplay": "ref5",
        "video_final": "ref6",
        "stream_url": "rtmp://x",
    }
    d.update(overrides)
    return d


REQUIRED = ["id", "video_principal", "logo_id", "rodape_id",
            "video_inicial", "video_miraplay", "video_final"]


class TestParseJob:
    def test_parses_required_fields(self):
        from livecompose.job import parse_job

        job = parse_job(_doc())
        assert job.id == "job1"
        assert job.principal == "ref1"
        assert job.logo == "ref2"
        assert job.footer == "ref3"
        assert (job.intro, job.mid, job.outro) == ("ref4", "ref5", "ref6")
        assert job.stream_url == "rtmp://x"

    def test_defaults(self):
        from livecompose.job import DEFAULT_OVERLAY_ENTRY, parse_job
        from livecompose.profiles import TARGET_PROFILE

        job = parse_job(_doc(stream_url=None))
        assert job.extras == []
        assert job.footer_text is None
        assert job.overlay_entry == DEFAULT_OVERLAY_ENTRY
        assert job.stream_url is None
        assert job.profile == TARGET_PROFILE

    def test_segment_order(self):
        from livecompose.job import parse_job

        job = parse_job(_doc(videos_extras=["e1", "e2"]))
        assert job.segment_refs == ["ref4", "ref5", "e1", "e2", "ref6"]

    def test_english_aliases(self):
        from livecompose.job import parse_job

        job = parse_job({
            "id": "j", "principal": "p", "logo": "l", "footer": "f",
            "intro": "i", "mid": "m", "outro": "o",
            "extras": ["x"], "footer_text": "Hello",
        })
        assert job.principal == "p"
        assert job.extras == ["x"]
        assert job.footer_text == "Hello"

    def test_resolves_path_variables(self):
        from livecompose.job import parse_job

        job = parse_job(_doc(
            video_inicial="${clips}/intro.mp4",
            paths={"clips": "/data/clips"},
        ))
        assert job.intro == "/data/clips/intro.mp4"

    def test_profile_overrides(self):
        from livecompose.job import parse_job

        job = parse_job(_doc(profile={"crf": 20}))
        assert job.profile["crf"] == 20
        assert job.profile["width"] == 1280

    def test_unknown_profile_key_raises(self):
        from livecompose.job import parse_job

        with pytest.raises(ValueError, match="profile key"):
            parse_job(_doc(profile={"bitrate": "1M"}))

    def test_overlay_entry_parsed(self):
        from livecompose.job import parse_job

        assert parse_job(_doc(overlay_entry="120")).overlay_entry == 120.0

    def test_negative_overlay_entry_raises(self):
        from livecompose.job import parse_job

        with pytest.raises(ValueError, match="overlay_entry"):
            parse_job(_doc(overlay_entry=-5))

    def test_extras_must_be_list(self):
        from livecompose.job import parse_job

        with pytest.raises(ValueError, match="list"):
            parse_job(_doc(videos_extras="e1"))

    @pytest.mark.parametrize("job_id", ["a/b", "../x"])
    def test_id_must_be_plain_name(self, job_id):
        from livecompose.job import parse_job

        with pytest.raises(ValueError, match="Invalid job id"):
            parse_job(_doc(id=job_id))


class TestValidation:
    @pytest.mark.parametrize("field", REQUIRED)
    def test_missing_required_field(self, field):
        from livecompose.errors import ValidationError
        from livecompose.job import parse_job

        doc = _doc()
        del doc[field]
        with pytest.raises(ValidationError) as exc_info:
            parse_job(doc)
        assert exc_info.value.missing == [field]

    @pytest.mark.parametrize("field", REQUIRED)
    def test_empty_required_field(self, field):
        from livecompose.errors import ValidationError
        from livecompose.job import parse_job

        with pytest.raises(ValidationError, match=field):
            parse_job(_doc(**{field: "  "}))

    def test_reports_every_missing_field(self):
        from livecompose.errors import ValidationError
        from livecompose.job import parse_job

        with pytest.raises(ValidationError) as exc_info:
            parse_job({"id": "x"})
        assert exc_info.value.missing == REQUIRED[1:]

    def test_validation_error_is_value_error(self):
        from livecompose.job import parse_job

        with pytest.raises(ValueError):
            parse_job({})

    def test_non_mapping_document(self):
        from livecompose.errors import ValidationError
        from livecompose.job import parse_job

        with pytest.raises(ValidationError):
            parse_job(["not", "a", "mapping"])


class TestLoadJobDocument:
    def test_reads_json(self, tmp_path):
        from livecompose.job import load_job_document

        path = tmp_path / "input.json"
        path.write_text(json.dumps(_doc()))
        assert load_job_document(path)["id"] == "job1"

    def test_reads_yaml(self, tmp_path):
        from livecompose.job import load_job_document

        path = tmp_path / "job.yaml"
        path.write_text(yaml.dump(_doc()))
        assert load_job_document(path)["video_final"] == "ref6"

    def test_empty_file_is_empty_document(self, tmp_path):
        from livecompose.job import load_job_document

        path = tmp_path / "empty.json"
        path.write_text("")
        assert load_job_document(path) == {}

    def test_missing_file_raises(self, tmp_path):
        from livecompose.job import load_job_document

        with pytest.raises(FileNotFoundError, match="not found"):
            load_job_document(tmp_path / "nope.json")


class TestLoadStreamInfo:
    def test_reads_id(self, tmp_path):
        from livecompose.job import load_stream_info

        path = tmp_path / "stream_info.json"
        path.write_text(json.dumps({"stream_url": "rtmp://x", "id": "job1", "video_id": "job1"}))
        assert load_stream_info(path) == {"stream_url": "rtmp://x", "id": "job1"}

    def test_falls_back_to_video_id(self, tmp_path):
        from livecompose.job import load_stream_info

        path = tmp_path / "stream_info.json"
        path.write_text(json.dumps({"stream_url": "rtmp://x", "video_id": "v9"}))
        assert load_stream_info(path)["id"] == "v9"

    def test_missing_stream_url_raises(self, tmp_path):
        from livecompose.job import load_stream_info

        path = tmp_path / "stream_info.json"
        path.write_text(json.dumps({"id": "job1"}))
        with pytest.raises(ValueError, match="stream_url"):
            load_stream_info(path)

    def test_invalid_content_raises(self, tmp_path):
        from livecompose.job import load_stream_info

        path = tmp_path / "stream_info.json"
        path.write_text("[1, 2")
        with pytest.raises(ValueError, match="Invalid"):
            load_stream_info(path)

    def test_missing_file_raises(self, tmp_path):
        from livecompose.job import load_stream_info

        with pytest.raises(FileNotFoundError):
            load_stream_info(tmp_path / "stream_info.json")
