"""redcaplake — All default values and configuration constants.

All tuneable values live here. Never hard-code magic numbers in source files.
Import constants from this module; override via LakeConfig at runtime.
"""

# ── Environment variable names ─────────────────────────────────────────────────
ENV_API_URL: str = "REDCAP_API_URL"
ENV_API_TOKEN: str = "REDCAP_API_TOKEN"
ENV_LAKE_ROOT: str = "TRE_LAKE_PATH"
ENV_REQUEST_TIMEOUT: str = "REDCAP_REQUEST_TIMEOUT"
ENV_LOG_LEVEL: str = "LOG_LEVEL"

# ── REDCap metadata ────────────────────────────────────────────────────────────
# Field types that carry no exportable data (compared case-insensitively)
NONDATA_FIELD_TYPES: frozenset = frozenset({"descriptive", "file", "sql", "signature"})

# ── REDCap record export ───────────────────────────────────────────────────────
# The EAV export is always requested as CSV; the output file extension follows it
EXPORT_FORMAT: str = "csv"

# Row-per-value layout
EXPORT_TYPE: str = "eav"

CSV_DELIMITER: str = ","

# Encoding REDCap instances emit for legacy projects; decoded to UTF-8 on request
LEGACY_ENCODING: str = "iso-8859-2"
TARGET_ENCODING: str = "utf-8"

# HTTP request timeout in seconds. None defers to the requests library default
REQUEST_TIMEOUT = None

# ── Lake layout ────────────────────────────────────────────────────────────────
# Sub-folder of the lake root that receives raw exports
INGEST_SUBDIR: str = "ingests"

# Output file name: <prefix>_<YYYYMMDD_HHMMSS>_<uuid4>.<format>
EXPORT_FILE_PREFIX: str = "redcap_records"
EXPORT_TIMESTAMP_FORMAT: str = "%Y%m%d_%H%M%S"

# ── Content addressing ─────────────────────────────────────────────────────────
DIGEST_ALGORITHM: str = "blake3"

# Bytes read per chunk while digesting
DIGEST_CHUNK_SIZE: int = 65536

# ── Provenance ─────────────────────────────────────────────────────────────────
GIT_EXECUTABLE: str = "git"

# Length of an abbreviated commit hash
SHORT_COMMIT_LENGTH: int = 7

# Seconds to wait for a single git invocation
GIT_TIMEOUT: int = 10

# ── Logging ────────────────────────────────────────────────────────────────────
DEFAULT_LOG_LEVEL: str = "INFO"
