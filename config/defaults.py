"""IncidentFusion — All default threshold values and configuration constants.

All tuneable values live here. Never hard-code magic numbers in source files.
Import constants from this module; override via PipelineConfig at runtime.
"""

# ── Duplicate detection ────────────────────────────────────────────────────────
# Maximum timestamp difference between two duplicate posts (1 hour, milliseconds)
DUPLICATE_TIME_WINDOW_MS: int = 3_600_000

# Maximum great-circle distance between two located duplicate posts (metres)
DUPLICATE_DISTANCE_METERS: float = 500.0

# Minimum Jaccard token-set similarity for two posts to be duplicates
TEXT_SIMILARITY_THRESHOLD: float = 0.7

# ── Location inference ─────────────────────────────────────────────────────────
# Confidence and radius reported when only one post carries a location
SINGLE_POINT_CONFIDENCE: float = 0.5
SINGLE_POINT_RADIUS_METERS: float = 1000.0

# Distance from the centre at which confidence reaches its floor (metres)
LOCATION_CONFIDENCE_FALLOFF_METERS: float = 5000.0

# Confidence never drops below this value for multi-point clusters
LOCATION_MIN_CONFIDENCE: float = 0.1

# Affected radius = max(avg_distance * multiplier, floor)
RADIUS_DISPERSION_MULTIPLIER: float = 1.5
MIN_AFFECTED_RADIUS_METERS: float = 500.0

# ── Event synthesis ────────────────────────────────────────────────────────────
# Clusters with fewer posts than this are not submitted for synthesis (noise filter)
MIN_POSTS_FOR_SYNTHESIS: int = 3

# Field defaults applied when the narrative collaborator omits or mangles a field
DEFAULT_EVENT_TITLE: str = "Synthesized City Event"
DEFAULT_EVENT_SUMMARY: str = "Multiple social media reports detected"
DEFAULT_SUGGESTED_ACTION: str = "Monitor situation and assess need for response"
DEFAULT_EVENT_TYPE: str = "emergency"
DEFAULT_SEVERITY: str = "medium"
DEFAULT_SYNTHESIS_CONFIDENCE: float = 0.7

# Output length limits for collaborator text fields
MAX_TITLE_CHARS: int = 80
MAX_SUMMARY_CHARS: int = 300

# Concurrent synthesis workers (clusters are independent)
SYNTHESIS_MAX_WORKERS: int = 2

# ── Sentiment aggregation ──────────────────────────────────────────────────────
# Combined score above +threshold is positive, below -threshold negative
SENTIMENT_CLASSIFICATION_THRESHOLD: float = 0.2

# Absolute score change below which the trend is "stable"
TREND_STABLE_THRESHOLD: float = 0.1

# Sentiment schema limits
MAX_SENTIMENT_KEYWORDS: int = 8
MAX_SENTIMENT_SUMMARY_CHARS: int = 100

# Confidence reported when the collaborator response cannot be parsed
FALLBACK_SENTIMENT_CONFIDENCE: float = 0.3

# Confidence assumed when the collaborator omits it
DEFAULT_SENTIMENT_CONFIDENCE: float = 0.5

# ── Area sweep ─────────────────────────────────────────────────────────────────
# Look-back window for posts and reports pulled per area
SWEEP_LOOKBACK_HOURS: int = 24

# Per-area fetch limits
SWEEP_MAX_SOCIAL_POSTS: int = 50
SWEEP_MAX_USER_REPORTS: int = 30

# Concurrent area workers (areas are independent within a sweep)
SWEEP_MAX_WORKERS: int = 1

# ── Alerts ─────────────────────────────────────────────────────────────────────
# negative_sentiment: score < threshold AND confidence > threshold
ALERT_NEGATIVE_SCORE_THRESHOLD: float = -0.7
ALERT_NEGATIVE_CONFIDENCE_THRESHOLD: float = 0.8

# sentiment_decline: trend down AND score < threshold
ALERT_DECLINE_SCORE_THRESHOLD: float = -0.5

# ── Image triage ───────────────────────────────────────────────────────────────
DEFAULT_IMAGE_SEVERITY_SCORE: int = 2
DEFAULT_IMAGE_CONFIDENCE: float = 0.7
FALLBACK_IMAGE_CONFIDENCE: float = 0.3

# Below this confidence an otherwise clean image report goes to manual review
MODERATION_REVIEW_CONFIDENCE: float = 0.5

# Severity score at or above which an emergency report is flagged high priority
HIGH_PRIORITY_SEVERITY_SCORE: int = 4

# Maximum characters kept from any collaborator-provided string in image analysis
MAX_IMAGE_TEXT_CHARS: int = 500

# ── LLM backends ──────────────────────────────────────────────────────────────
# Default active LLM backend: "anthropic" or "ollama"
LLM_BACKEND: str = "ollama"

# Anthropic model identifier
ANTHROPIC_MODEL: str = "claude-sonnet-4-6"

# Ollama model identifier (must be vision-capable for image triage)
OLLAMA_MODEL: str = "gemma3:27b"

# Default Ollama server base URL.
# Override via the OLLAMA_HOST environment variable or PipelineConfig(ollama_host=...).
OLLAMA_HOST: str = "http://localhost:11434"

# Ollama Cloud API key for Bearer token authentication; empty string disables auth headers.
OLLAMA_API_KEY: str = ""

# Minimum max_tokens for structured extraction calls
LLM_MIN_MAX_TOKENS: int = 256

# Default temperature for LLM calls
LLM_TEMPERATURE: float = 0.1

# Default max_tokens for LLM calls unless overridden
LLM_DEFAULT_MAX_TOKENS: int = 1024

# ── Geocoding ─────────────────────────────────────────────────────────────────
# Reverse geocoding is off by default; the public Nominatim service is rate limited
GEOCODING_ENABLED: bool = False
GEOCODING_BASE_URL: str = "https://nominatim.openstreetmap.org"
GEOCODING_REQUEST_TIMEOUT: int = 10
GEOCODING_USER_AGENT: str = "IncidentFusion/1.0"

# ── Paths ─────────────────────────────────────────────────────────────────────
# Root directory for all pipeline run outputs
OUTPUT_ROOT: str = "outputs/runs"

# Area definitions file (relative to the project root)
AREAS_FILE: str = "config/areas.yaml"

# Previous-score store used as the trend baseline
SCORE_STORE_PATH: str = "outputs/sentiment_scores.json"

# ── Logging ────────────────────────────────────────────────────────────────────
DEFAULT_LOG_LEVEL: str = "INFO"
