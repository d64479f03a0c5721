"""The package version."""

VERSION = "0.1.0"


def version_string() -> str:
    """Return the package version."""
    return VERSION