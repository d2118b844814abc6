"""
catalog-resources

Filesystem-backed attachment store for catalog records
"""

__version__ = "0.1.0"

from .logging_config import setup_logging

__all__ = [
    "__version__",
    "setup_logging",
]
