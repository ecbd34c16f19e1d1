import re
from urllib.parse import parse_qs, urlparse

INDIRECT_HOST_MARKERS = ("youtube.com", "youtu.be")

CANONICAL_WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

_VIDEO_ID = re.compile(r"^[A-Za-z0-9_-]+$")
_LONG_HOSTS = {"youtube.com", "www.youtube.com", "m.youtube.com", "music.youtube.com"}
_SHORT_HOSTS = {"youtu.be", "www.youtu.be"}


def with_scheme(reference: str) -> str:
    """Bare host/path references are taken as https URLs"""
    reference = reference.strip()
    if "://" in reference:
        return reference
    return f"https://{reference}"


def is_indirect(reference: str) -> bool:
    """Video-sharing page link, as opposed to a direct media file URL"""
    return any(marker in reference for marker in INDIRECT_HOST_MARKERS)


def extract_video_id(reference: str):
    """Video id from short-form host/<id> or long-form host/watch?v=<id>"""
    candidate = with_scheme(reference)

    try:
        parsed = urlparse(candidate)
        host = (parsed.hostname or "").lower()
    except ValueError:
        return None

    if host in _SHORT_HOSTS:
        video_id = parsed.path.lstrip("/").split("/", 1)[0]
    elif host in _LONG_HOSTS and parsed.path.rstrip("/") == "/watch":
        video_id = parse_qs(parsed.query).get("v", [""])[0]
    else:
        return None

    return video_id if _VIDEO_ID.match(video_id) else None


def normalize(reference: str) -> str:
    """
    Rewrite a video-sharing link into the canonical watch URL.

    Never fails: anything that is not a recognized short-form or long-form
    link comes back unchanged and is treated as a direct URL downstream.
    Normalizing a canonical link yields the same link.
    """
    video_id = extract_video_id(reference)
    if video_id is None:
        return reference
    return CANONICAL_WATCH_URL.format(video_id=video_id)
