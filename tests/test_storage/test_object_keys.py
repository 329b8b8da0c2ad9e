import re

import pytest

from app.utils.mime import guess_image_mime, guess_video_mime
from app.utils.object_keys import build_object_key, key_extension, normalize_key

BUCKET = "media-bucket"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("videos/a.mp4", "videos/a.mp4"),
        ("/videos/a.mp4", "videos/a.mp4"),
        ("  videos/a.mp4  ", "videos/a.mp4"),
        (f"https://s3.eu-west-1.amazonaws.com/{BUCKET}/videos/a.mp4", "videos/a.mp4"),
        (f"https://{BUCKET}.s3.eu-west-1.amazonaws.com/videos/a.mp4", "videos/a.mp4"),
        (f"http://minio.local:9000/{BUCKET}/thumbnails/x%20y.jpg", "thumbnails/x%20y.jpg"),
        ("https://cdn.example.com/other-bucket/videos/a.mp4", "other-bucket/videos/a.mp4"),
        ("https://cdn.example.com/videos/a.mp4?X-Amz-Expires=60", "videos/a.mp4"),
    ],
)
def test_normalize_key(raw, expected):
    assert normalize_key(raw, bucket=BUCKET) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", "/", "https://s3.amazonaws.com", "https://s3.amazonaws.com/"])
def test_normalize_key_empty_inputs(raw):
    assert normalize_key(raw, bucket=BUCKET) is None


@pytest.mark.parametrize(
    "raw",
    [
        "videos/a.mp4",
        f"https://s3.amazonaws.com/{BUCKET}/videos/a.mp4",
        f"https://{BUCKET}.s3.amazonaws.com/thumbnails/b.png",
        "///nested/deep/key.mkv",
    ],
)
def test_normalize_key_is_idempotent(raw):
    once = normalize_key(raw, bucket=BUCKET)
    assert normalize_key(once, bucket=BUCKET) == once


def test_normalize_key_without_bucket_keeps_path():
    assert normalize_key(f"https://s3.amazonaws.com/{BUCKET}/videos/a.mp4") == f"{BUCKET}/videos/a.mp4"


def test_build_object_key_layout():
    key = build_object_key("videos", "My Holiday (final).MP4")
    assert re.fullmatch(r"videos/[0-9a-f]{32}_My_Holiday_final\.MP4", key)
    assert build_object_key("videos", "a.mp4") != build_object_key("videos", "a.mp4")


def test_build_object_key_fallback_name():
    assert build_object_key("thumbnails/", "   ").endswith("_file.bin")


@pytest.mark.parametrize(
    "key, ext",
    [("videos/a.MP4", "mp4"), ("videos/a", ""), ("videos.d/a", ""), (None, ""), ("a.tar.gz", "gz")],
)
def test_key_extension(key, ext):
    assert key_extension(key) == ext


@pytest.mark.parametrize(
    "key, mime",
    [
        ("videos/a.mp4", "video/mp4"),
        ("videos/a.MKV", "video/x-matroska"),
        ("videos/a.webm", "video/webm"),
        ("videos/a.mov", "video/quicktime"),
        ("videos/a.bin", "application/octet-stream"),
        ("videos/noext", "application/octet-stream"),
    ],
)
def test_guess_video_mime(key, mime):
    assert guess_video_mime(key) == mime


@pytest.mark.parametrize(
    "key, mime",
    [
        ("thumbnails/a.png", "image/png"),
        ("thumbnails/a.JPEG", "image/jpeg"),
        ("thumbnails/a.webp", "image/webp"),
        ("thumbnails/a.gif", "image/jpeg"),
        (None, "image/jpeg"),
    ],
)
def test_guess_image_mime(key, mime):
    assert guess_image_mime(key) == mime
