"""HTTP client for the Gakwaya backend API.

Every call funnels through ApiClient._request, which attaches the bearer
token from the Session, converts transport failures and non-success
responses into ApiError subclasses, and logs the exchange at debug level.
"""

from __future__ import annotations

from typing import Any

import requests

from . import constants as c
from . import envtext
from .errors import (
    ApiResponseError,
    NotAuthenticatedError,
    TransportError,
    ValidationError,
)
from .logging import get_logger
from .session import Session

logger = get_logger(__name__)

# Fields sent back on a full update, in the shape the backend binds
_UPDATE_FIELDS = (
    "name",
    "image",
    "git_url",
    "branch",
    "dockerfile_path",
    "volumes",
    "build_args",
    "domain",
    "port",
)


def _error_message(resp: requests.Response, default: str) -> str:
    """Extract the backend's error text from a failed response.

    Order: ``message``, then ``error`` (the field the backend's handlers
    actually fill), then the per-call default.
    """
    try:
        body = resp.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return default


class ApiClient:
    """Thin wrapper over the backend REST endpoints.

    Args:
        session: API URL and bearer token to use for every request.
        timeout: Per-request timeout in seconds.
        http: requests.Session to send through (a new one by default).
    """

    def __init__(
        self,
        session: Session,
        *,
        timeout: float = c.REQUEST_TIMEOUT,
        http: requests.Session | None = None,
    ) -> None:
        self.session = session
        self.timeout = timeout
        self._http = http if http is not None else requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.session.api_url.rstrip('/')}{path}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        default_error: str,
        json: Any = None,
        params: dict[str, str] | None = None,
        auth: bool = True,
    ) -> requests.Response:
        headers: dict[str, str] = {}
        if auth:
            if not self.session.token:
                raise NotAuthenticatedError("Not logged in. Run 'gakwaya login' first.")
            headers["Authorization"] = f"Bearer {self.session.token}"

        url = self._url(path)
        logger.debug("%s %s", method, url)
        try:
            resp = self._http.request(
                method,
                url,
                headers=headers,
                json=json,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"{default_error}: {e}") from e

        logger.debug("%s %s -> %s", method, url, resp.status_code)
        if not resp.ok:
            raise ApiResponseError(_error_message(resp, default_error), resp.status_code)
        return resp

    def _json(self, method: str, path: str, *, default_error: str, **kwargs: Any) -> Any:
        resp = self._request(method, path, default_error=default_error, **kwargs)
        try:
            return resp.json()
        except ValueError as e:
            raise ApiResponseError(
                f"{default_error}: invalid JSON response", resp.status_code
            ) from e

    # --- Auth ---

    def login(self, username: str, password: str) -> dict[str, Any]:
        """Exchange credentials for a token ({"token": ...})."""
        return self._json(
            "POST",
            "/login",
            default_error=c.ERR_LOGIN,
            json={"username": username, "password": password},
            auth=False,
        )

    def register(self, username: str, password: str) -> dict[str, Any]:
        return self._json(
            "POST",
            "/register",
            default_error=c.ERR_REGISTER,
            json={"username": username, "password": password},
            auth=False,
        )

    def me(self) -> dict[str, Any]:
        return self._json("GET", "/me", default_error=c.ERR_ME)

    # --- Applications ---

    def list_applications(self) -> list[dict[str, Any]]:
        return self._json("GET", "/applications", default_error=c.ERR_LIST_APPS)

    def get_application(self, app_id: int | str) -> dict[str, Any]:
        return self._json("GET", f"/applications/{app_id}", default_error=c.ERR_GET_APP)

    def create_application(self, payload: dict[str, Any]) -> dict[str, Any]:
        return self._json(
            "POST", "/applications", default_error=c.ERR_CREATE_APP, json=payload
        )

    def update_application(self, app_id: int | str, payload: dict[str, Any]) -> dict[str, Any]:
        return self._json(
            "PUT", f"/applications/{app_id}", default_error=c.ERR_UPDATE_APP, json=payload
        )

    def delete_application(self, app_id: int | str) -> dict[str, Any]:
        return self._json("DELETE", f"/applications/{app_id}", default_error=c.ERR_DELETE_APP)

    def deploy_application(self, app_id: int | str) -> dict[str, Any]:
        """Start a container from the application's stored image."""
        return self._json(
            "POST", f"/applications/{app_id}/deploy", default_error=c.ERR_DEPLOY_APP
        )

    def deploy_from_git(self, app_id: int | str, payload: dict[str, Any]) -> dict[str, Any]:
        """Clone, build and run the application's Git source."""
        return self._json(
            "POST",
            f"/applications/{app_id}/deploy-from-git",
            default_error=c.ERR_DEPLOY_GIT,
            json=payload,
        )

    def update_application_env(
        self, app_id: int | str, env: dict[str, str]
    ) -> dict[str, Any]:
        """Replace an application's environment, keeping its other fields."""
        record = self.get_application(app_id)
        payload = {key: record.get(key) for key in _UPDATE_FIELDS if key in record}
        payload["env"] = env
        return self.update_application(app_id, payload)

    # --- Docker ---

    def list_containers(self) -> Any:
        return self._json("GET", "/docker/containers", default_error=c.ERR_LIST_CONTAINERS)

    def stop_container(self, container_id: str) -> dict[str, Any]:
        return self._json("POST", f"/docker/stop/{container_id}", default_error=c.ERR_STOP)

    def remove_container(self, container_id: str) -> dict[str, Any]:
        return self._json(
            "DELETE", f"/docker/remove/{container_id}", default_error=c.ERR_REMOVE
        )

    def restart_container(self, container_id: str) -> dict[str, Any]:
        return self._json(
            "POST", f"/docker/restart/{container_id}", default_error=c.ERR_RESTART
        )

    def container_logs(self, container_id: str) -> str:
        """Return container logs as plain text."""
        return self._request("GET", f"/docker/logs/{container_id}", default_error=c.ERR_LOGS).text

    def inspect_container(self, container_id: str) -> dict[str, Any]:
        return self._json("GET", f"/docker/inspect/{container_id}", default_error=c.ERR_INSPECT)

    def container_stats(self, container_id: str) -> Any:
        return self._json("GET", f"/docker/stats/{container_id}", default_error=c.ERR_STATS)

    def exposed_ports(
        self, *, container_id: str | None = None, image: str | None = None
    ) -> list[str]:
        """List ports exposed by a container or an image.

        Raises:
            ValidationError: Unless exactly one of container_id/image is given.
        """
        if bool(container_id) == bool(image):
            raise ValidationError("Specify exactly one of container_id or image")
        params = {"container_id": container_id} if container_id else {"image": image or ""}
        data = self._json(
            "GET", "/docker/exposed-ports", default_error=c.ERR_PORTS, params=params
        )
        ports = data.get("ports") if isinstance(data, dict) else None
        return list(ports or [])

    def prune(self) -> dict[str, Any]:
        """Remove stopped containers, unused volumes/networks, dangling images."""
        return self._json("POST", "/docker/prune", default_error=c.ERR_PRUNE)

    def prune_all(self) -> dict[str, Any]:
        """Remove all images not used by a container."""
        return self._json("POST", "/docker/prune-all", default_error=c.ERR_PRUNE_ALL)

    def docker_info(self) -> dict[str, Any]:
        return self._json("GET", "/docker/info", default_error=c.ERR_DOCKER_INFO)


def application_env(record: dict[str, Any]) -> dict[str, Any]:
    """Environment of a fetched application, stored as text or as a mapping."""
    return envtext.parse(record.get("env"))
