"""kushn: deterministic, self-describing SHA-256 manifests of directory trees."""

__version__ = "0.3.0"
