from __future__ import annotations


def hosted_zone_name(domain: str) -> str:
    """Return the registrable zone for a domain: its last two labels.

    "blog.example.com" -> "example.com". A trailing root dot is ignored, so the
    result is stable when fed back in.
    """

    labels = domain.rstrip(".").split(".")
    return ".".join(labels[-2:])


def same_zone(domain: str, other: str) -> bool:
    return hosted_zone_name(domain) == hosted_zone_name(other)


def ensure_trailing_dot(name: str) -> str:
    return name if name.endswith(".") else f"{name}."
