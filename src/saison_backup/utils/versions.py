"""Format version compatibility checks."""


def major_version(version: str) -> str:
    """Major component of a dotted version string."""
    return version.strip().split(".", 1)[0]


def is_supported_version(version: str, supported: list[str]) -> bool:
    """Whether ``version`` shares its major version with a supported one.

    Minor revisions only add optional fields, which older readers ignore.
    """
    if not version or not version.strip():
        return False
    major = major_version(version)
    return any(major_version(candidate) == major for candidate in supported)
