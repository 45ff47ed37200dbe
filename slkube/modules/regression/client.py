"""
Starlake REST API client used by the regression suite.

Every call returns an ApiResponse instead of raising, so a check can record
a FAIL and move on. Connection errors are reported with status code 0.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger("slkube.regression.client")


@dataclass
class ApiResponse:
    """HTTP status plus decoded body of one API call."""

    status_code: int
    text: str = ""

    @property
    def ok(self) -> bool:
        return self.status_code == 200

    @property
    def body(self) -> Any:
        """JSON-decoded body, or the raw text when it is not JSON."""
        if not self.text:
            return None
        try:
            return json.loads(self.text)
        except ValueError:
            return self.text


class StarlakeApiClient:
    """Cookie-session client for the Starlake UI/API service."""

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: int = 60,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _call(self, method: str, path: str, **kwargs) -> ApiResponse:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.debug(f"{method} {url} failed: {e}")
            return ApiResponse(status_code=0, text=str(e))

        logger.debug(f"{method} {path} -> {response.status_code}: {response.text[:500]}")
        return ApiResponse(status_code=response.status_code, text=response.text)

    # Session

    def health(self) -> ApiResponse:
        return self._call("GET", "/api/v1/health")

    def sign_in(self, email: str, password: str) -> ApiResponse:
        """Basic sign-in; the session cookie is kept for later calls."""
        return self._call("POST", "/api/v1/auth/basic/signin", json={"email": email, "password": password})

    # Projects and domains

    def list_projects(self) -> ApiResponse:
        return self._call("GET", "/api/v1/projects")

    def select_project(self, project_id: Any) -> ApiResponse:
        """Selecting a project updates the active project of the session."""
        return self._call("GET", f"/api/v1/projects/{project_id}")

    def create_domain(self, name: str, comment: str = "") -> ApiResponse:
        return self._call("POST", "/api/v1/load/false", json={"name": name, "tags": [], "comment": comment})

    def list_domain_names(self) -> ApiResponse:
        return self._call("GET", "/api/v1/load/names")

    def delete_domain(self, name: str) -> ApiResponse:
        """Delete a domain, falling back to the DELETE endpoint."""
        response = self._call("POST", f"/api/v1/load/{name}/delete", headers={"Content-Type": "application/json"})
        if not response.ok:
            response = self._call("DELETE", f"/api/v1/load/{name}")
        return response

    # Files

    def file_counts(self, domain: str) -> ApiResponse:
        return self._call("GET", f"/api/v1/schemas/files-count/{domain}")

    def list_files(self, domain: str, area: str) -> ApiResponse:
        return self._call("GET", f"/api/v1/schemas/files/{domain}", params={"type": area})

    # Schemas and loads

    def infer_schema(
        self,
        domain: str,
        table: str,
        csv_path: Path,
        pattern: str,
        comment: str = "",
    ) -> ApiResponse:
        """Infer a table schema from a CSV sent as the raw request body."""
        params: Dict[str, str] = {
            "domain": domain,
            "schema": table,
            "pattern": pattern,
            "comment": comment or table,
            "header": "true",
            "filename": csv_path.name,
            "variant": "false",
        }
        return self._call(
            "POST",
            "/api/v1/schemas/infer-schema-attach",
            params=params,
            data=csv_path.read_bytes(),
            headers={"Content-Type": "text/csv"},
        )

    def create_table(self, domain: str, table: str, schema: Any) -> ApiResponse:
        return self._call("POST", f"/api/v1/schemas/{domain}/false/{table}", json=schema)

    def load_file(self, domain: str, table: str, csv_path: Path) -> ApiResponse:
        """Upload a file (multipart) and load it into a table."""
        with open(csv_path, "rb") as f:
            return self._call(
                "POST",
                f"/api/v1/schemas/{domain}/{table}/false/false/sl_none/load",
                files={"file": (csv_path.name, f, "text/csv")},
            )
