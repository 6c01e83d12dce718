"""Single source of truth for the package version."""

VERSION = "0.1.0"
