"""covgate - coverage report normalization, patch coverage and status checks."""

__version__ = "0.1.0"
