"""Style-conformance checker for JavaScript code conventions."""

__version__ = "0.1.0"
