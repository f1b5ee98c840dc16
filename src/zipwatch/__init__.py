"""zipwatch: unpack dropped zip archives into versioned workflow folders."""

from importlib import metadata as _metadata

__all__ = ["__version__"]


def __getattr__(name: str):
    if name != "__version__":
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    try:
        return _metadata.version("zipwatch")
    except _metadata.PackageNotFoundError:
        return "0+unknown"


def __dir__():
    return sorted(list(globals().keys()) + ["__version__"])
