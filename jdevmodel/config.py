"""
Configuration constants for jdevmodel.

There are no configuration files and no environment lookups.
Per-node behaviour lives in ModuleSettings; everything else is fixed here
and can only be overridden by explicit arguments (or CLI flags).
"""

# Separator placed between ancestor names when disambiguating module names
DEFAULT_SEPARATOR = "-"

# Anchor names registered by default
MODULE_DIR = "MODULE_DIR"
PROJECT_DIR = "PROJECT_DIR"

# JDev module files are named after the module
MODULE_FILE_EXTENSION = ".jpr"

# Defaults for ModuleSettings
DEFAULT_OFFLINE = False
DEFAULT_DOWNLOAD_SOURCES = True
DEFAULT_DOWNLOAD_DOCS = False
