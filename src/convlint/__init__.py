"""convlint - convention conformance engine for TypeScript/React codebases."""

__version__ = "0.1.0"
