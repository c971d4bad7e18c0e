__version__ = "0.1.0"

__all__ = [
    "__version__",
    "aggregate",
    "candidates",
    "cli",
    "config",
    "core",
    "links",
    "redirects",
    "reporting",
]
