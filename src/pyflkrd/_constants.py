"""Internal constants shared across the library."""

DEFAULT_ORIGIN = "http://localhost:3000"
DEFAULT_CACHE_VERSION = "v1.0.0"
USER_AGENT = "pyflkrd/1"

# Storage location that keeps stores or the queue in process memory.
IN_MEMORY = ":memory:"

API_PREFIX = "/api/"
IMAGE_HOST = "image.tmdb.org"

# App shell fetched into the static store at install.
STATIC_ASSETS: tuple[str, ...] = (
    "/",
    "/manifest.json",
    "/icons/icon-192x192.png",
    "/icons/icon-512x512.png",
)

# ------------------------------------------------------------------
# Background sync
# ------------------------------------------------------------------

SYNC_TAG = "watchlist-sync"
SYNC_ENDPOINT = "/api/watchlist"
SKIP_WAITING_MESSAGE = "SKIP_WAITING"

# ------------------------------------------------------------------
# Push notifications
# ------------------------------------------------------------------

NOTIFICATION_TITLE = "FLKRD Movies"
DEFAULT_PUSH_BODY = "New content available!"
NOTIFICATION_ICON = "/icons/icon-192x192.png"
NOTIFICATION_BADGE = "/icons/icon-72x72.png"
VIBRATE_PATTERN: tuple[int, ...] = (100, 50, 100)
EXPLORE_ACTION = "explore"
CLOSE_ACTION = "close"
EXPLORE_ICON = "/icons/explore-icon.png"
CLOSE_ICON = "/icons/close-icon.png"
ROOT_URL = "/"
