"""
Application updater - self-update engine for a locally installed application.

This package checks a release source for a newer version and installs it with
single-flight semantics, taking a versioned backup of the binary and
application-data directories before any file is replaced.
"""

__version__ = "0.1.0"
