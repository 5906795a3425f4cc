"""
Tests for resolving stored image keys to public URLs.
"""
from app.config import settings
from app.utils.image_urls import get_image_urls


def test_empty_keys_use_fallback():
    assert get_image_urls([]) == [settings.FALLBACK_IMAGE_URL]
    assert get_image_urls(None) == [settings.FALLBACK_IMAGE_URL]


def test_local_keys_served_from_uploads():
    assert get_image_urls(["gallery/a.png"]) == ["/uploads/gallery/a.png"]


def test_media_prefixed_keys_not_doubled():
    assert get_image_urls(["/uploads/gallery/a.png", "uploads/gallery/b.png"]) == [
        "/uploads/gallery/a.png",
        "/uploads/gallery/b.png",
    ]


def test_cdn_base(monkeypatch):
    monkeypatch.setattr(settings, "CDN_BASE_URL", "https://cdn.example.com/")
    assert get_image_urls(["gallery/a.png", "/gallery/b.png"]) == [
        "https://cdn.example.com/gallery/a.png",
        "https://cdn.example.com/gallery/b.png",
    ]


def test_absolute_urls_pass_through():
    url = "https://res.cloudinary.com/demo/image/upload/v1/gallery/a.png"
    assert get_image_urls([url], base_url="https://cdn.example.com") == [url]


def test_no_base_returns_keys_unchanged():
    assert get_image_urls(["gallery/a.png"], base_url="") == ["gallery/a.png"]


def test_order_preserved():
    keys = ["gallery/3.png", "gallery/1.png", "gallery/2.png"]
    assert get_image_urls(keys, base_url="https://cdn.example.com") == [
        f"https://cdn.example.com/{k}" for k in keys
    ]
