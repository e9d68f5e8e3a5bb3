"""Deployment request building and the create/deploy workflow.

A DeployRequest holds what the user entered. It is validated locally, then
turned into backend payloads:

- image method: one create call with every application field
  (without git_url/branch).
- git method: a create call with a synthesized image tag (unless an image
  was given), followed by a deploy-from-git call against the returned id.

The two git calls are not atomic. When the second fails the application
record already exists; deploy() reports that as PartialFailure carrying the
orphaned id instead of deleting it.
"""

from __future__ import annotations

import re
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

from . import envtext
from .errors import ApiError, MissingApplicationIdError, ValidationError
from .logging import get_logger

if TYPE_CHECKING:
    from .api import ApiClient

logger = get_logger(__name__)

_TAG_INVALID_RUN = re.compile(r"[^a-z0-9]+")


class DeployMethod(str, Enum):
    """How the application's image is obtained."""

    IMAGE = "image"  # Pull an existing Docker image
    GIT = "git"  # Build from a Git repository


@dataclass(frozen=True)
class DeployRequest:
    """Wizard input for a new application.

    Immutable; build a new one per submission.
    """

    method: DeployMethod = DeployMethod.IMAGE
    name: str = ""

    # Image source
    image: str = ""

    # Git source
    git_url: str = ""
    branch: str = ""
    dockerfile_path: str = ""
    build_args: dict[str, str] = field(default_factory=dict)

    # Runtime
    volumes: tuple[str, ...] = ()
    domain: str = ""
    host_port: int | str | None = None
    container_port: int | str | None = None
    env: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_cli(
        cls,
        *,
        name: str,
        image: str | None = None,
        git_url: str | None = None,
        branch: str | None = None,
        dockerfile: str | None = None,
        build_arg: Iterable[str] = (),
        volume: Iterable[str] = (),
        domain: str | None = None,
        host_port: int | str | None = None,
        container_port: int | str | None = None,
        env: Iterable[str] = (),
        env_file: str | None = None,
    ) -> DeployRequest:
        """Create a DeployRequest from CLI options.

        The method is git when --git-url is given, image otherwise.
        --env-file is read first; --env pairs override its keys.

        Raises:
            ValidationError: If the env file cannot be read as UTF-8 text.
        """
        env_map: dict[str, Any] = {}
        if env_file:
            env_map.update(envtext.read_file(env_file))
        env_map.update(envtext.parse_pairs(env))

        return cls(
            method=DeployMethod.GIT if git_url else DeployMethod.IMAGE,
            name=name,
            image=image or "",
            git_url=git_url or "",
            branch=branch or "",
            dockerfile_path=dockerfile or "",
            build_args=envtext.parse_pairs(build_arg),
            volumes=tuple(volume),
            domain=domain or "",
            host_port=host_port,
            container_port=container_port,
            env=env_map,
        )


@dataclass(frozen=True)
class Created:
    """Application record created (image method)."""

    application_id: Any
    response: Mapping[str, Any]


@dataclass(frozen=True)
class DeployedFromGit:
    """Application created and its Git build started."""

    application_id: Any
    image: str
    response: Mapping[str, Any]


@dataclass(frozen=True)
class PartialFailure:
    """Application created, but deploy-from-git failed.

    The record at application_id exists without a running container.
    """

    application_id: Any
    image: str
    error: ApiError


DeployResult = Union[Created, DeployedFromGit, PartialFailure]


def _now_ms() -> int:
    return int(time.time() * 1000)


def validate(request: DeployRequest) -> None:
    """Check required fields before anything is sent.

    Raises:
        ValidationError: On an empty name, or a missing image/git_url for
            the selected method.
    """
    if not request.name.strip():
        raise ValidationError("Application name is required")
    if request.method is DeployMethod.IMAGE and not request.image.strip():
        raise ValidationError("Docker image is required for image deployments")
    if request.method is DeployMethod.GIT and not request.git_url.strip():
        raise ValidationError("Git URL is required for Git deployments")


def coerce_port(value: int | str | None, label: str = "port") -> int | None:
    """Normalize a port field; empty means absent (backend decides).

    Raises:
        ValidationError: If value is a non-numeric string.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a number")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    # isdigit() alone admits superscripts and other scripts' digits
    if not (text.isascii() and text.isdigit()):
        raise ValidationError(f"{label} must be a number, got '{value}'")
    return int(text)


def synthesize_image_tag(name: str, timestamp_ms: int | None = None) -> str:
    """Derive an image tag from an application name and a timestamp.

    >>> synthesize_image_tag("My App!!", 1700000000000)
    'my_app_1700000000000'
    """
    base = _TAG_INVALID_RUN.sub("_", name.lower()).strip("_")
    ts = _now_ms() if timestamp_ms is None else timestamp_ms
    return f"{base}_{ts}"


def resolve_image(request: DeployRequest, now_ms: Callable[[], int] = _now_ms) -> str:
    """Image reference to send on create: explicit image, else synthesized."""
    explicit = request.image.strip()
    if explicit:
        if request.method is DeployMethod.GIT:
            # Unconfirmed against the backend, which retags after the build
            logger.warning(
                "Using explicit image %r instead of a synthesized tag for Git deploy", explicit
            )
        return explicit
    tag = synthesize_image_tag(request.name, now_ms())
    logger.debug("Synthesized image tag %s", tag)
    return tag


def _add_ports(payload: dict[str, Any], request: DeployRequest) -> None:
    host = coerce_port(request.host_port, "host_port")
    container = coerce_port(request.container_port, "container_port")
    if host is not None:
        payload["host_port"] = host
    if container is not None:
        payload["container_port"] = container


def build_image_payload(request: DeployRequest) -> dict[str, Any]:
    """Create payload for an image deployment (no Git source fields)."""
    payload: dict[str, Any] = {
        "name": request.name,
        "image": request.image,
        "dockerfile_path": request.dockerfile_path,
        "volumes": list(request.volumes),
        "build_args": dict(request.build_args),
        "domain": request.domain,
        "env": dict(request.env),
    }
    _add_ports(payload, request)
    return payload


def build_git_create_payload(
    request: DeployRequest, now_ms: Callable[[], int] = _now_ms
) -> dict[str, Any]:
    """Create payload for the first step of a Git deployment."""
    payload: dict[str, Any] = {
        "name": request.name,
        "image": resolve_image(request, now_ms),
        "git_url": request.git_url,
        "branch": request.branch,
        "dockerfile_path": request.dockerfile_path,
        "volumes": list(request.volumes),
        "build_args": dict(request.build_args),
        "domain": request.domain,
    }
    _add_ports(payload, request)
    return payload


def build_git_deploy_payload(request: DeployRequest) -> dict[str, Any]:
    """Payload for deploy-from-git.

    env is left out when empty so the backend uses the stored one.
    """
    payload: dict[str, Any] = {
        "git_url": request.git_url,
        "branch": request.branch,
        "dockerfile_path": request.dockerfile_path,
        "volumes": list(request.volumes),
        "build_args": dict(request.build_args),
    }
    if request.env:
        payload["env"] = dict(request.env)
    return payload


def extract_application_id(response: Any) -> Any:
    """Find the new application's id in a create response, or None."""
    if not isinstance(response, Mapping):
        return None
    app_id = response.get("id")
    if app_id is None or app_id == "":
        nested = response.get("application")
        app_id = nested.get("id") if isinstance(nested, Mapping) else None
    if app_id == "":
        return None
    return app_id


def deploy(
    client: ApiClient,
    request: DeployRequest,
    now_ms: Callable[[], int] = _now_ms,
) -> DeployResult:
    """Create the application and, for Git sources, start the build.

    Raises:
        ValidationError: Before any request, on invalid input.
        ApiError: If the create call fails.
        MissingApplicationIdError: If create returns no id (git method);
            deploy-from-git is not attempted.
    """
    validate(request)

    if request.method is DeployMethod.IMAGE:
        response = client.create_application(build_image_payload(request))
        app_id = extract_application_id(response)
        logger.info("Created application %s from image %s", app_id, request.image)
        return Created(application_id=app_id, response=response)

    # Build both payloads first so port errors surface before any request
    create_payload = build_git_create_payload(request, now_ms)
    deploy_payload = build_git_deploy_payload(request)

    response = client.create_application(create_payload)
    app_id = extract_application_id(response)
    if app_id is None:
        raise MissingApplicationIdError(
            "Application was created but the backend returned no id; Git deploy skipped"
        )
    logger.info("Created application %s, starting Git deploy", app_id)

    try:
        deployed = client.deploy_from_git(app_id, deploy_payload)
    except ApiError as e:
        logger.warning("Deploy from Git failed for application %s: %s", app_id, e)
        return PartialFailure(application_id=app_id, image=create_payload["image"], error=e)

    return DeployedFromGit(application_id=app_id, image=create_payload["image"], response=deployed)
