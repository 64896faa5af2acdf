"""Text helpers for criteria matching."""

from typing import Iterable, Optional

LOCATION_COMPONENTS = ("city", "state", "country")


def normalize_text(value: Optional[str]) -> str:
    """Lowercase and trim; None becomes an empty string."""
    if value is None:
        return ""
    return str(value).strip().lower()


def build_job_text(
    title: Optional[str], description: Optional[str], skills: Optional[Iterable[str]]
) -> str:
    """Concatenate title, description and skills into one lowercase haystack.

    Parts are joined with newlines so a keyword cannot match across the
    boundary between two parts.
    """
    parts = [normalize_text(title), normalize_text(description)]
    parts.extend(normalize_text(skill) for skill in skills or [])
    return "\n".join(part for part in parts if part)


def location_component(location: object, name: str) -> str:
    """Read one location component from a model or a mapping."""
    if location is None:
        return ""
    if isinstance(location, dict):
        return normalize_text(location.get(name))
    return normalize_text(getattr(location, name, None))
