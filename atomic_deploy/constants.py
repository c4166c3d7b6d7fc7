"""Global constants for atomic-deploy"""

APP_NAME = "atomic-deploy"
LOG_FORMAT = "%(message)s"

# Configuration
DEFAULT_CONFIG_FILE = "config.yml"
CONFIG_ROOT_KEY = "Deploy"
DEFAULT_PROCESS_TIMEOUT = 300  # seconds
DEFAULT_KEEP_RELEASES = 5
MIN_KEEP_RELEASES = 2  # current + one previous for rollback

# Directory structure
RELEASES_DIR = "releases"
SHARED_DIR = "shared"
CURRENT_LINK_NAME = "current"
DEPLOYMENT_LOCK_FILE = ".deploy.lock"

# Release naming
RELEASE_NAME_FORMAT = "%Y%m%d%H%M%S"

# Framework subpaths handed back to the service group before a rollback delete
ROLLBACK_CHOWN_PATHS = ("var/cache", "var/logs", "var/sessions")

# Privilege elevation
ELEVATION_PREFIX = "sudo"

# GitHub
GITHUB_URL_TEMPLATE = "https://github.com/{repo}.git"


# Error codes
class ErrorCode:
    CONFIG_ERROR = "AD001"
    IO_ERROR = "AD002"
    EXECUTION_FAILED = "AD003"
    COMMAND_TIMEOUT = "AD004"
    NON_ZERO_EXIT = "AD005"
    NO_RELEASE = "AD006"
    NO_PREVIOUS_RELEASE = "AD007"
    RELEASE_COLLISION = "AD008"
    ALREADY_RUNNING = "AD009"


# Environment variables
ENV_CONFIG_PATH = "ATOMIC_DEPLOY_CONFIG"

# Display constants
EMOJI_SUCCESS = "✓"
EMOJI_WARNING = "⚠"
EMOJI_ARROW = "→"
EMOJI_LINK = "🔗"

# Messages templates
MSG_LINK_UPDATED = f"{EMOJI_LINK} Link updated: {{link}} {EMOJI_ARROW} {{target}}"
MSG_RELEASE_CREATED = f"{EMOJI_SUCCESS} Release created: {{name}}"
MSG_RELEASE_REMOVED = f"{EMOJI_SUCCESS} Release removed: {{name}}"
MSG_SHARED_LINKED = f"{EMOJI_LINK} Shared: {{path}} {EMOJI_ARROW} {{target}}"
