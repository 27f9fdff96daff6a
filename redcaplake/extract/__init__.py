"""redcaplake extract package.

Field discovery from the data dictionary and EAV record export.
"""

from redcaplake.extract.eav_export import EAVExporter, export, transcode
from redcaplake.extract.metadata import (
    describe_fields,
    fetch_metadata,
    parse_metadata,
    project_info,
    resolve_fields,
    select_fields,
)

__all__ = [
    "EAVExporter",
    "describe_fields",
    "export",
    "fetch_metadata",
    "parse_metadata",
    "project_info",
    "resolve_fields",
    "select_fields",
    "transcode",
]
