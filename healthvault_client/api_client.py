"""
HTTP client for the HealthVault API.

Async wrapper over the REST endpoints used by the HealthVault app: account
registration and login, profile management, and record CRUD with
multipart attachment uploads.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from healthvault_client.config import HEALTHVAULT_API_URL, HEALTHVAULT_API_TIMEOUT

logger = logging.getLogger(__name__)

# (filename, content, content_type)
FileUpload = Tuple[str, bytes, str]


class HealthVaultAPIError(ValueError):
    """Error response from the API, carrying the status code and error kind."""

    def __init__(self, status_code: int, detail: str, kind: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        self.kind = kind
        super().__init__(f"API error {status_code}: {detail}")


def _error_from_response(response: httpx.Response) -> HealthVaultAPIError:
    try:
        body = response.json()
    except ValueError:
        return HealthVaultAPIError(response.status_code, response.text)
    if isinstance(body, dict):
        detail = body.get("detail", response.text)
        return HealthVaultAPIError(
            response.status_code,
            detail if isinstance(detail, str) else json.dumps(detail),
            body.get("kind"),
        )
    return HealthVaultAPIError(response.status_code, response.text)


def _record_form(
    title: Optional[str],
    medical_history: Optional[str],
    doctor_notes: Optional[str],
    vitals: Optional[Dict[str, Any]],
    lab_report: Optional[FileUpload],
    prescription: Optional[FileUpload],
) -> Tuple[Dict[str, str], Dict[str, FileUpload]]:
    """Only fields that are not None are sent, so updates stay partial."""
    data: Dict[str, str] = {}
    if title is not None:
        data["title"] = title
    if medical_history is not None:
        data["medicalHistory"] = medical_history
    if doctor_notes is not None:
        data["doctorNotes"] = doctor_notes
    if vitals is not None:
        data["vitals"] = json.dumps(vitals)

    files: Dict[str, FileUpload] = {}
    if lab_report is not None:
        files["labReport"] = lab_report
    if prescription is not None:
        files["prescription"] = prescription
    return data, files


class HealthVaultAPIClient:
    """Client for the HealthVault REST API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: API root; defaults to HEALTHVAULT_API_URL.
            token: Access token; set automatically by register() and login().
            timeout: Request timeout in seconds; defaults to HEALTHVAULT_API_TIMEOUT.
            transport: Optional httpx transport (used in tests).
        """
        self.base_url = base_url or HEALTHVAULT_API_URL
        if not self.base_url:
            raise ValueError("HEALTHVAULT_API_URL must be set in config")

        # Remove trailing slash
        self.base_url = self.base_url.rstrip("/")
        self.token = token
        self.timeout = timeout or HEALTHVAULT_API_TIMEOUT
        self._transport = transport

    async def _request(self, method: str, endpoint: str, **kwargs) -> Any:
        """
        Make an HTTP request to the API and return the decoded JSON body.

        Raises:
            HealthVaultAPIError: For HTTP error responses
            ConnectionError: For connection/request errors
        """
        url = f"{self.base_url}{endpoint}"
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, headers=headers, **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            error = _error_from_response(e.response)
            logger.error(str(error))
            raise error from e
        except httpx.RequestError as e:
            error_msg = f"Request error: {e}"
            logger.error(error_msg)
            raise ConnectionError(error_msg) from e

    # Auth methods
    async def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        """
        Create an account and keep its access token for later calls.

        Returns:
            The new user (id, name, email, profilePicture, createdAt).

        Raises:
            HealthVaultAPIError: 409 if the email is taken.
        """
        body = await self._request(
            "POST",
            "/api/auth/register",
            json={"name": name, "email": email, "password": password}
        )
        self.token = body["token"]
        return body["user"]

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """Log in and keep the access token. Returns the user."""
        body = await self._request(
            "POST",
            "/api/auth/login",
            json={"email": email, "password": password}
        )
        self.token = body["token"]
        return body["user"]

    def logout(self) -> None:
        """Forget the access token."""
        self.token = None

    # User methods
    async def get_me(self) -> Dict[str, Any]:
        body = await self._request("GET", "/api/users/me")
        return body["user"]

    async def update_profile(
        self,
        name: str,
        email: str,
        profile_picture: Optional[FileUpload] = None
    ) -> Dict[str, Any]:
        """
        Update name and email, optionally uploading a new profile picture.

        Args:
            profile_picture: (filename, content, content_type) of an image.
        """
        files = {"profile": profile_picture} if profile_picture is not None else None
        body = await self._request(
            "PUT",
            "/api/users/update",
            data={"name": name, "email": email},
            files=files
        )
        return body["user"]

    async def change_password(self, old_password: str, new_password: str) -> Dict[str, Any]:
        return await self._request(
            "PUT",
            "/api/users/change-password",
            json={"oldPassword": old_password, "newPassword": new_password}
        )

    async def delete_account(self) -> Dict[str, Any]:
        """Delete the account with all its records; the token is discarded."""
        result = await self._request("DELETE", "/api/users/delete")
        self.token = None
        return result

    # Record methods
    async def create_record(
        self,
        title: str,
        medical_history: Optional[str] = None,
        doctor_notes: Optional[str] = None,
        vitals: Optional[Dict[str, Any]] = None,
        lab_report: Optional[FileUpload] = None,
        prescription: Optional[FileUpload] = None
    ) -> Dict[str, Any]:
        """
        Create a medical record.

        Args:
            title: Record title (required)
            medical_history: Free-text history (optional)
            doctor_notes: Free-text notes (optional)
            vitals: e.g. {"bloodPressure": "120/80", "heartRate": "72"} (optional)
            lab_report: (filename, content, content_type) (optional)
            prescription: (filename, content, content_type) (optional)

        Returns:
            The created record.

        Raises:
            HealthVaultAPIError: 400 for missing title or malformed input,
                413/415 for rejected attachments
            ConnectionError: If connection fails
        """
        data, files = _record_form(title, medical_history, doctor_notes, vitals, lab_report, prescription)
        return await self._request("POST", "/api/records", data=data, files=files or None)

    async def list_records(self) -> List[Dict[str, Any]]:
        """All of the caller's records, newest first."""
        return await self._request("GET", "/api/records")

    async def get_record(self, record_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/api/records/{record_id}")

    async def update_record(
        self,
        record_id: str,
        title: Optional[str] = None,
        medical_history: Optional[str] = None,
        doctor_notes: Optional[str] = None,
        vitals: Optional[Dict[str, Any]] = None,
        lab_report: Optional[FileUpload] = None,
        prescription: Optional[FileUpload] = None
    ) -> Dict[str, Any]:
        """
        Partially update a record. Arguments left as None are not sent and
        keep their stored value; pass "" to clear a text field.
        """
        data, files = _record_form(title, medical_history, doctor_notes, vitals, lab_report, prescription)
        return await self._request(
            "PUT", f"/api/records/{record_id}", data=data, files=files or None
        )

    async def delete_record(self, record_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/api/records/{record_id}")


# Global client instance
_client_instance: Optional[HealthVaultAPIClient] = None


def get_healthvault_client() -> HealthVaultAPIClient:
    """Get or create the global API client instance."""
    global _client_instance
    if _client_instance is None:
        _client_instance = HealthVaultAPIClient()
    return _client_instance
