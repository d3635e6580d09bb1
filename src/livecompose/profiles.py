"""Encoding profiles for the transcode and live-stream invocations.

Every segment that goes into the lossless concat must share one profile,
so the re-encode step always normalizes to TARGET_PROFILE. Jobs may
override individual keys through the ``profile`` field of the input
document.
"""

TARGET_PROFILE = {
    "width": 1280,
    "height": 720,
    "fps": 25,
    "video_codec": "libx264",
    "preset": "veryfast",
    "crf": 23,
    "pix_fmt": "yuv420p",
    "audio_codec": "aac",
    "audio_rate": 44100,
    "audio_channels": 2,
}

STREAM_PROFILE = {
    "width": 1280,
    "height": 720,
    "video_codec": "libx264",
    "preset": "veryfast",
    "crf": 23,
    "maxrate": "3000k",
    "bufsize": "6000k",
    "pix_fmt": "yuv420p",
    "gop": 50,
    "audio_codec": "aac",
    "audio_bitrate": "192k",
    "audio_rate": 44100,
    "format": "flv",
    "realtime": True,
}


def merge_profile(base: dict, overrides: dict | None) -> dict:
    """Return a copy of *base* with *overrides* applied.

    Raises:
        ValueError: If an override names a key the profile doesn't have.
    """
    merged = dict(base)
    for key, value in (overrides or {}).items():
        if key not in base:
            raise ValueError(
                f"Unknown profile key: '{key}'. Valid: {sorted(base)}"
            )
        merged[key] = value
    return merged


def codec_args(profile: dict) -> list[str]:
    """Codec arguments shared by every output that ends up in the concat.

    The concat demuxer copies streams, so pixel format and audio layout are
    pinned here along with the codecs.
    """
    return [
        "-c:v", profile["video_codec"],
        "-preset", profile["preset"],
        "-crf", str(profile["crf"]),
        "-pix_fmt", profile["pix_fmt"],
        "-c:a", profile["audio_codec"],
        "-ar", str(profile["audio_rate"]),
        "-ac", str(profile["audio_channels"]),
    ]


def video_filter(profile: dict) -> str:
    """Scale, square pixels and constant frame rate."""
    return (
        f"scale={profile['width']}:{profile['height']},"
        f"setsar=1,fps={profile['fps']}"
    )


def silent_audio_source(profile: dict) -> str:
    """lavfi source for a silent track matching the profile's sample rate."""
    return f"anullsrc=r={profile['audio_rate']}:cl=mono"


def encode_args(profile: dict) -> list[str]:
    """ffmpeg arguments for a normalized (concat-compatible) re-encode."""
    return ["-vf", video_filter(profile), *codec_args(profile)]


def stream_args(profile: dict) -> list[str]:
    """ffmpeg output arguments for the live RTMP/FLV push."""
    return [
        "-vf", (
            f"scale=w={profile['width']}:h={profile['height']}"
            ":force_original_aspect_ratio=decrease"
        ),
        "-c:v", profile["video_codec"],
        "-preset", profile["preset"],
        "-crf", str(profile["crf"]),
        "-maxrate", profile["maxrate"],
        "-bufsize", profile["bufsize"],
        "-pix_fmt", profile["pix_fmt"],
        "-g", str(profile["gop"]),
        "-c:a", profile["audio_codec"],
        "-b:a", profile["audio_bitrate"],
        "-ar", str(profile["audio_rate"]),
        "-f", profile["format"],
    ]
