"""redcaplake utilities package.

URI conversion and text helpers are stateless pure functions; git_utils
shells out to the git executable and degrades silently when it cannot.
"""

from redcaplake.utils.git_utils import git_commit_info, normalize_remote
from redcaplake.utils.text import map_value_type, parse_choices, strip_html
from redcaplake.utils.uri_utils import to_path, to_uri

__all__ = [
    "git_commit_info",
    "normalize_remote",
    "map_value_type",
    "parse_choices",
    "strip_html",
    "to_path",
    "to_uri",
]
