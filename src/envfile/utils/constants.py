"""Magic strings and constants shared by the envfile store and its front ends."""

# On-disk record keys
KEY_RECORD_ENV = "env"

# Config keys
KEY_ENVFILE = "envfile"
KEY_ENVFILE_PATH = "path"
KEY_ENVFILE_LOCK_TIMEOUT = "lock_timeout"
KEY_MARKERS = "markers"
KEY_MARKERS_DIR = "dir"
KEY_LOGGING = "logging"
KEY_LOGGING_LEVEL = "level"

# Environment overrides for the config layer
ENV_PATH = "ENVFILE_PATH"
ENV_LOCK_TIMEOUT = "ENVFILE_LOCK_TIMEOUT"
ENV_MARKER_DIR = "ENVFILE_MARKER_DIR"
ENV_LOG_LEVEL = "ENVFILE_LOG_LEVEL"

# OCI image config keys
KEY_IMAGE_CONFIG = "config"
KEY_IMAGE_ENV = "Env"

# File naming
LOCK_SUFFIX = ".lock"
MARKER_SUFFIX = ".marker"
TEMP_PREFIX = ".envfile-"
TEMP_SUFFIX = ".tmp"
FILE_MODE = 0o600

# Defaults
DEFAULT_ENVFILE_PATH = "/.devpod/envfile.json"
DEFAULT_MARKER_DIR = "/var/devpod"
DEFAULT_LOCK_TIMEOUT = 5.0
DEFAULT_LOCK_POLL_INTERVAL = 0.05
DEFAULT_LOG_LEVEL = "INFO"
