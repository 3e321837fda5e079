"""Identifier case conversion used by convention warnings."""

import re
from typing import List


def to_pascal_case(value: str) -> str:
    """
    Convert an identifier to PascalCase.

    Non-alphanumeric characters split words; each word keeps its first
    character upper-cased and the rest lower-cased.

    >>> to_pascal_case("user_profile")
    'UserProfile'
    """
    words = re.sub(r"[^a-zA-Z0-9]", " ", value).split(" ")
    return "".join(word[:1].upper() + word[1:].lower() for word in words)


def to_camel_case(value: str) -> str:
    """Convert an identifier to camelCase."""
    pascal = to_pascal_case(value)
    return pascal[:1].lower() + pascal[1:]


def entity_route_paths(name: str) -> List[str]:
    """Plural and singular collection paths for an entity (``/users``, ``/user``)."""
    lowered = name.lower()
    return [f"/{lowered}s", f"/{lowered}"]
