"""Statement coverage for Go binaries exercised by integration tests."""

__version__ = "0.1.0"
