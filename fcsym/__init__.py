"""Symmetry reduction of anharmonic interatomic force constants."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("fcsym")
except PackageNotFoundError:
    # package is not installed
    pass
