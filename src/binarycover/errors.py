class CoverageToolError(Exception):
    """Base class for every failure that aborts a binarycover run."""


class ResolutionError(CoverageToolError):
    """Dependency listing failed or returned metadata that could not be decoded."""


class ParseError(CoverageToolError):
    """Entry point source or generated harness text is not valid Go."""


class InstrumentationError(CoverageToolError):
    """The per-file instrumenter failed for some file."""


class MergeError(CoverageToolError):
    """A program unit lacks the import declaration the merge anchors on."""


class EntryPointWriteError(CoverageToolError):
    """The merged entry point could not be written back to disk."""


class ProfileError(CoverageToolError):
    """A coverage profile file contains a line that is not in profile format."""
