from pathlib import Path

# Project naming
DEFAULT_PROJECT_NAME = "project"

# Canonical delimiter protocol
FILE_MARKER = ">>> FILE:"

# Output locations
DEFAULT_OUTPUT_DIR = Path(".aiproj/projects")
DEFAULT_ARCHIVE_DIR = Path(".aiproj/archives")
DEFAULT_KEEP_ARCHIVES = 10  # newest archives kept after each run
CONFIG_DIRNAME = ".aiproj"
CONFIG_FILENAME = "config.yml"

# Headroom required on top of the project size before writing
FREE_SPACE_BUFFER_BYTES = 1024 * 1024
