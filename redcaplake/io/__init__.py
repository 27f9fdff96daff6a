"""redcaplake I/O package.

File read/write operations and content addressing only — no business logic in this layer.
"""

from redcaplake.io.persistence import (
    compute_digest,
    digest_hex,
    ensure_ingest_dir,
    export_file_name,
    save_bytes,
    save_json,
    verify_digest,
)

__all__ = [
    "compute_digest",
    "digest_hex",
    "ensure_ingest_dir",
    "export_file_name",
    "save_bytes",
    "save_json",
    "verify_digest",
]
