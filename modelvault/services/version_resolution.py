"""Version resolution: latest version, version ordering and thumbnail lookup"""

import logging
from typing import List, Optional, Sequence

from modelvault.config import settings
from modelvault.store.relations import as_list

logger = logging.getLogger(__name__)


def version_number(version: Optional[dict]) -> float:
    """
    Numeric value of a version record's `version` field.

    Versions are compared as numbers, never as strings, so "10" sorts after
    "2". Missing or unparseable values sort below every real version.
    """
    if not version:
        return float("-inf")

    raw = version.get("version")
    if raw is None or isinstance(raw, bool):
        return float("-inf")

    try:
        return float(raw)
    except (TypeError, ValueError):
        logger.warning(f"Unparseable version number {raw!r} on version {version.get('id')}")
        return float("-inf")


def sort_versions(versions: Sequence[dict]) -> List[dict]:
    """Versions ordered newest first; equal numbers keep their input order"""
    return sorted(as_list(versions), key=version_number, reverse=True)


def latest_version(versions: Sequence[dict]) -> Optional[dict]:
    """The version with the greatest version number, or None for an empty list"""
    ordered = sort_versions(versions)
    return ordered[0] if ordered else None


def version_label(version: dict) -> str:
    """Display label: integral numbers lose their decimal part ("2" not "2.0")"""
    number = version_number(version)
    if number == float("-inf"):
        return str(version.get("version", ""))
    if number.is_integer():
        return str(int(number))
    return str(number)


def version_labels(versions: Sequence[dict]) -> List[str]:
    """Labels of all versions, newest first"""
    return [version_label(v) for v in sort_versions(versions)]


def next_version_number(versions: Sequence[dict]) -> int:
    """Number for a new version: one above the current maximum, 1 when there is none"""
    latest = latest_version(versions)
    if latest is None or version_number(latest) == float("-inf"):
        return 1
    return int(version_number(latest)) + 1


def resolve_cover_image(images: Sequence[dict], cover_url: Optional[str]) -> Optional[dict]:
    """
    Image designated as cover: the one whose path matches `cover_url`,
    otherwise the first image. None when there are no images.
    """
    images = [img for img in as_list(images) if isinstance(img, dict)]
    if not images:
        return None

    if cover_url:
        for image in images:
            if image.get("image_path") == cover_url:
                return image

    return images[0]


def resolve_thumbnail(version: Optional[dict], placeholder: Optional[str] = None) -> str:
    """
    Thumbnail URL for a version.

    Uses the cover image's path when the version has images, else the
    static placeholder. Never raises, including for a None version.
    """
    placeholder = placeholder if placeholder is not None else settings.placeholder_thumbnail
    if not version:
        return placeholder

    cover = resolve_cover_image(version.get("images"), version.get("thumbnail_url"))
    if cover is None or not cover.get("image_path"):
        return placeholder

    return cover["image_path"]
