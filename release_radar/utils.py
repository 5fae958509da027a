"""
Utility functions for release-radar.

Usage:
    from release_radar.utils import extract_playlist_id, parse_timestamp
"""

from datetime import datetime, timezone


def extract_spotify_id(url_or_id: str) -> str:
    """
    Extract Spotify ID from a URL or return ID as-is.

    Handles various Spotify URL formats:
        - https://open.spotify.com/playlist/ID
        - https://open.spotify.com/playlist/ID?si=xxx
        - spotify:playlist:ID
        - Just the ID

    Examples:
        extract_spotify_id("https://open.spotify.com/track/abc123?si=xyz")
        # Returns: "abc123"

        extract_spotify_id("spotify:track:abc123")
        # Returns: "abc123"
    """
    if url_or_id.startswith("spotify:"):
        return url_or_id.split(":")[-1]

    if "spotify.com" in url_or_id:
        url_or_id = url_or_id.split("?")[0]
        return url_or_id.rstrip("/").split("/")[-1]

    return url_or_id


def extract_playlist_id(url_or_id: str) -> str:
    """
    Extract playlist ID from a Spotify playlist URL, URI or bare ID.

    Raises:
        ValueError: If a URL/URI is given that does not point to a playlist.
    """
    is_reference = url_or_id.startswith("spotify:") or "spotify.com" in url_or_id
    if is_reference and "playlist" not in url_or_id:
        raise ValueError(f"Not a playlist URL: {url_or_id}")
    playlist_id = extract_spotify_id(url_or_id)
    if not playlist_id:
        raise ValueError(f"Empty playlist id in: {url_or_id}")
    return playlist_id


def parse_timestamp(value: str | None) -> datetime | None:
    """
    Parse a Spotify ISO 8601 timestamp ("2024-01-15T10:30:00Z") as aware UTC.

    Returns None for missing or malformed values (very old playlist entries
    have no added_at).
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_milliseconds(seconds: float) -> str:
    """Format a delay in seconds as whole milliseconds ("350ms")."""
    return f"{int(seconds * 1000)}ms"
