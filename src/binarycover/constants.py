"""Common constants used across binarycover."""

# Prefix of the generated coverage variables, `GoCover1`, `GoCover2`, ...
COVER_VAR_PREFIX = "GoCover"

# Dependencies whose import path contains this segment are vendored code
VENDOR_SEGMENT = "/vendor/"

ENTRY_POINT_FILE = "main.go"

COVER_MODES = ("set", "count", "atomic")
DEFAULT_COVER_MODE = "set"

# Read by the generated report routine when the instrumented binary runs
REPORT_DIR_ENV = "COVERAGE_FILEPATH"
REPORT_SUFFIX_ENV = "COVERAGE_FILENAME"

# Names declared by the generated harness
REGISTER_FUNC = "coverRegisterFile"
REPORT_FUNC = "coverReport"
MODULE_ALIAS_PREFIX = "_cover"
