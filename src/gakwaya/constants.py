"""Constants module for gakwaya.

Timeouts, storage keys and default error messages are defined here (SSOT).
"""

from __future__ import annotations

# === HTTP ===
REQUEST_TIMEOUT = 30  # Seconds per backend request
DEFAULT_API_URL = "http://localhost:8080/api"

# === Environment Variables ===
ENV_API_URL = "GAKWAYA_API_URL"  # Overrides Config.api_url
ENV_DEBUG = "GAKWAYA_DEBUG"  # Enables debug logging

# === Client-held Storage ===
CONFIG_DIR_NAME = ".gakwaya"
CONFIG_FILE_NAME = "config.json"
AUTH_FILE_NAME = "auth.json"
AUTH_TOKEN_KEY = "gakwaya_auth"  # Key the token is stored under
AUTH_FILE_MODE = 0o600

# === Default Error Messages (used when the backend sends no message) ===
ERR_LOGIN = "Login failed"
ERR_REGISTER = "Registration failed"
ERR_ME = "Failed to fetch current user"
ERR_LIST_APPS = "Failed to fetch applications"
ERR_GET_APP = "Failed to fetch application details"
ERR_CREATE_APP = "Failed to create application"
ERR_UPDATE_APP = "Failed to update application"
ERR_DELETE_APP = "Failed to delete application"
ERR_DEPLOY_APP = "Failed to start deployment"
ERR_DEPLOY_GIT = "Failed to start deployment from Git"
ERR_LIST_CONTAINERS = "Failed to fetch containers"
ERR_STOP = "Failed to stop container"
ERR_REMOVE = "Failed to remove container"
ERR_RESTART = "Failed to restart container"
ERR_LOGS = "Failed to fetch logs"
ERR_INSPECT = "Failed to inspect container"
ERR_STATS = "Failed to fetch container stats"
ERR_PORTS = "Failed to fetch exposed ports"
ERR_PRUNE = "Failed to prune containers"
ERR_PRUNE_ALL = "Failed to prune images"
ERR_DOCKER_INFO = "Failed to fetch Docker info"
