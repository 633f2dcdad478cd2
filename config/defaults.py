"""PhotoGeo: All default values and configuration constants.

All tuneable values live here. Never hard-code magic numbers in source files.
Import constants from this module; override via LocatorConfig at runtime.
"""

# ── Reverse geocoding (OpenStreetMap Nominatim) ────────────────────────────────
# Public reverse-geocoding endpoint
NOMINATIM_URL: str = "https://nominatim.openstreetmap.org/reverse"

# Nominatim zoom level: 10 = city/region granularity (18 would be street level)
GEOCODER_ZOOM: int = 10

# HTTP request timeout for geocoding calls (seconds)
GEOCODER_TIMEOUT: int = 10

# Minimum seconds between successive geocoding requests (Nominatim usage policy: 1 req/s)
GEOCODER_MIN_INTERVAL_SECONDS: float = 1.0

# Nominatim requires an identifying User-Agent
GEOCODER_USER_AGENT: str = "PhotoGeo/1.0 (image location lookup)"

# Label used when neither a city nor a country could be resolved
UNKNOWN_PLACE_LABEL: str = "Unknown"

# ── LLM backends ──────────────────────────────────────────────────────────────
# Default active LLM backend: "anthropic" or "ollama"
LLM_BACKEND: str = "ollama"

# Anthropic model identifier (must accept image input)
ANTHROPIC_MODEL: str = "claude-sonnet-4-6"

# Ollama model identifier (must be a vision model)
OLLAMA_MODEL: str = "gemma3:27b"

# Default Ollama server base URL.
# Override via the OLLAMA_HOST environment variable or LocatorConfig(ollama_host=...).
OLLAMA_HOST: str = "http://localhost:11434"

# Ollama Cloud API key for Bearer token authentication.
# Empty string disables auth headers (local Ollama).
OLLAMA_API_KEY: str = ""

# Default temperature for the location-guess call
LLM_TEMPERATURE: float = 0.2

# Default max_tokens for the location-guess call
LLM_DEFAULT_MAX_TOKENS: int = 1024

# Minimum max_tokens for structured JSON calls
LLM_MIN_MAX_TOKENS: int = 256

# ── AI guess bounds ───────────────────────────────────────────────────────────
MIN_AI_CONFIDENCE: int = 0
MAX_AI_CONFIDENCE: int = 100

# ── Image input boundary ──────────────────────────────────────────────────────
# Largest accepted image payload in bytes
MAX_IMAGE_BYTES: int = 20 * 1024 * 1024

# HTTP timeout when fetching an image from a URL (seconds)
IMAGE_FETCH_TIMEOUT: int = 20

# ── Output ────────────────────────────────────────────────────────────────────
# Default directory for batch JSON records
OUTPUT_ROOT: str = "outputs/records"

# ── Logging ────────────────────────────────────────────────────────────────────
DEFAULT_LOG_LEVEL: str = "INFO"
