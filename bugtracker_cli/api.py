"""
Bug Tracker API Client
======================

Thin async wrapper over the REST API. Every method returns the decoded JSON
body on success and raises ``APIError`` for any non-2xx response, carrying
the server's ``error`` message and ``details`` list.
"""

import httpx
from typing import Optional, Dict, Any, List


class APIError(Exception):
    """Non-2xx response (or no response at all, status_code 0)"""

    def __init__(self, status_code: int, message: str, details: Optional[List[str]] = None):
        self.status_code = status_code
        self.message = message
        self.details = details or []
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {'; '.join(str(d) for d in self.details)}"
        return self.message


class BugTrackerAPI:
    """Async client for the Bug Tracker backend"""

    def __init__(
        self,
        base_url: str = "http://localhost:5000/api",
        token: Optional[str] = None,
        timeout: int = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        await self._client.aclose()

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method, endpoint, json=json, params=params, headers=self._get_headers()
            )
        except httpx.ConnectError:
            raise APIError(0, "Cannot connect to server. Is the backend running?")
        except httpx.TimeoutException:
            raise APIError(0, "Request timed out")

        try:
            data = response.json()
        except ValueError:
            data = {"error": response.text or response.reason_phrase}

        if response.is_success:
            return data

        if isinstance(data, dict):
            raise APIError(
                response.status_code,
                data.get("error") or data.get("detail") or response.reason_phrase,
                data.get("details"),
            )
        raise APIError(response.status_code, str(data))

    # ==================== Health ====================
    async def health_check(self) -> Dict[str, Any]:
        return await self._request("GET", "/health")

    # ==================== Authentication ====================
    async def register(
        self,
        username: str,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Register a new user; returns {message, token, user}"""
        data = {
            "username": username,
            "email": email,
            "password": password,
            "firstName": first_name,
            "lastName": last_name,
        }
        if role:
            data["role"] = role
        return await self._request("POST", "/auth/register", json=data)

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """Login; returns {message, token, user}"""
        return await self._request("POST", "/auth/login", json={"email": email, "password": password})

    async def get_me(self) -> Dict[str, Any]:
        return await self._request("GET", "/auth/me")

    async def update_profile(self, **fields) -> Dict[str, Any]:
        """Update profile fields (firstName, lastName, username, email, avatar)"""
        return await self._request("PUT", "/auth/profile", json=fields)

    async def change_password(self, current_password: str, new_password: str) -> Dict[str, Any]:
        return await self._request(
            "PUT", "/auth/password",
            json={"currentPassword": current_password, "newPassword": new_password}
        )

    # ==================== Bugs ====================
    async def list_bugs(
        self,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        params = {
            key: value
            for key, value in (("status", status), ("priority", priority), ("search", search))
            if value
        }
        return await self._request("GET", "/bugs", params=params or None)

    async def get_bug(self, bug_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/bugs/{bug_id}")

    async def create_bug(self, bug: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/bugs", json=bug)

    async def update_bug(self, bug_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/bugs/{bug_id}", json=changes)

    async def delete_bug(self, bug_id: str) -> Dict[str, Any]:
        """Delete a bug; returns {message, deletedBug}"""
        return await self._request("DELETE", f"/bugs/{bug_id}")
