"""Duration-budgeted timeline composition and subtitle timing."""

from .environment import load_environment

# Environment files are read before any configuration is resolved.
load_environment()

__version__ = "0.1.0"

__all__ = ["__version__", "load_environment"]
