"""REDCap Web API client for redcaplake.

Handles all HTTP communication with a REDCap instance: form-encoded POST
construction, status checking, and JSON decoding of metadata responses.

No business logic lives here — this client returns raw API payloads.
Field filtering and export persistence happen in the extract layer.

REDCap API conventions:
- Every call is a POST to a single endpoint with an
  application/x-www-form-urlencoded body; ``content`` selects the operation.
- Any non-2xx status is the failure signal; the body carries the diagnostic.
- Each call is a single attempt; failures surface to the caller.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Sequence, Type

from requests import Response, Session
from requests.adapters import HTTPAdapter

from config.defaults import REQUEST_TIMEOUT
from redcaplake.errors import ApiRequestError, ExportRequestError, MetadataRequestError
from redcaplake.models.export import ExportRequest

logger = logging.getLogger(__name__)

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _indexed_forms(forms: Optional[Sequence[str]]) -> Dict[str, str]:
    """Expand a form list into REDCap's ``forms[0]``, ``forms[1]``, … parameters."""
    if forms is None:
        return {}
    return {f"forms[{i}]": form for i, form in enumerate(forms)}


class RedcapClient:
    """Client for a single REDCap project API endpoint.

    Args:
        api_url: REDCap API endpoint (e.g. https://redcap.example.org/api/).
        token: Project API token.
        request_timeout: Passed unmodified to requests; None uses the library default.
        session: Optional pre-configured requests Session.
    """

    def __init__(
        self,
        api_url: str,
        token: str,
        request_timeout: Optional[float] = REQUEST_TIMEOUT,
        session: Optional[Session] = None,
    ) -> None:
        self.api_url = api_url
        self.token = token
        self.request_timeout = request_timeout

        self._owns_session = session is None
        self._session = session or Session()
        if self._owns_session:
            adapter = HTTPAdapter(max_retries=0)   # single attempt, no transport retries
            self._session.mount("https://", adapter)
            self._session.mount("http://", adapter)

    def _post(
        self,
        form: Dict[str, str],
        error_cls: Type[ApiRequestError],
        accept: Optional[str] = None,
    ) -> Response:
        """POST a form body and fail with ``error_cls`` on any non-2xx status.

        Args:
            form: Form fields, excluding the token (added here).
            error_cls: ApiRequestError subclass raised on failure.
            accept: Optional Accept header value.

        Returns:
            The successful requests Response.
        """
        body = {"token": self.token}
        body.update(form)
        headers = {"Content-Type": _FORM_CONTENT_TYPE}
        if accept:
            headers["Accept"] = accept

        logger.debug("REDCap POST content=%s to %s", form.get("content"), self.api_url)
        resp = self._session.post(
            self.api_url, data=body, headers=headers, timeout=self.request_timeout
        )

        if not 200 <= resp.status_code < 300:
            logger.warning(
                "REDCap returned HTTP %d for content=%s", resp.status_code, form.get("content")
            )
            raise error_cls(resp.status_code, resp.text)
        return resp

    def _post_json(self, form: Dict[str, str]) -> Any:
        resp = self._post(form, MetadataRequestError, accept="application/json")
        try:
            return json.loads(resp.text)
        except json.JSONDecodeError as exc:
            logger.warning("REDCap returned a non-JSON body (length=%d): %s", len(resp.text), exc)
            raise MetadataRequestError(resp.status_code, resp.text) from exc

    def metadata(self, forms: Optional[Sequence[str]] = None) -> Any:
        """Fetch the project data dictionary.

        Args:
            forms: Optional instrument names restricting the dictionary.

        Returns:
            Decoded JSON (normally a list of field metadata objects).
        """
        form = {"content": "metadata", "format": "json", "returnFormat": "json"}
        form.update(_indexed_forms(forms))
        return self._post_json(form)

    def project_info(self) -> Any:
        """Fetch project-level attributes (title, purpose, status, …)."""
        return self._post_json({"content": "project", "format": "json", "returnFormat": "json"})

    def export_records(self, request: ExportRequest) -> bytes:
        """Run an EAV record export and return the raw response bytes.

        Args:
            request: ExportRequest; its token is replaced by this client's token.

        Returns:
            Response body exactly as received.
        """
        form = request.to_form()
        form.pop("token", None)
        resp = self._post(form, ExportRequestError)
        logger.debug("REDCap export returned %d bytes", len(resp.content))
        return resp.content

    def close(self) -> None:
        """Close the underlying HTTP session if this client created it."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "RedcapClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
