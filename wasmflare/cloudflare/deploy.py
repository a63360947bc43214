from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Tuple, Union

from ..keystore import KeyStore, KeyStoreError, keys
from .api import CloudflareApi, MultipartFile
from .errors import ArtifactReadError, CloudflareError, ConfigurationError, DeployNotImplemented


LogFn = Callable[..., None]


def _silent(*_parts: Any) -> None:
    return None


@dataclass(frozen=True)
class PagesTarget:
    account_id: str
    project_name: str


@dataclass(frozen=True)
class WorkerTarget:
    account_id: str
    script_name: str


DeploymentTarget = Union[PagesTarget, WorkerTarget]


@dataclass(frozen=True)
class ArtifactPart:
    role: str
    path: Path


@dataclass(frozen=True)
class ArtifactSet:
    """Ordered files for one deployment; ``role`` is the multipart field name."""

    parts: Tuple[ArtifactPart, ...]

    @classmethod
    def for_pages(cls, output_dir: Path, *, script_name: str, wasm_name: str) -> "ArtifactSet":
        # Pages uploads name each part after its output file.
        return cls(
            parts=(
                ArtifactPart(role=script_name, path=Path(output_dir) / script_name),
                ArtifactPart(role=wasm_name, path=Path(output_dir) / wasm_name),
            )
        )


def deployments_path(target: PagesTarget) -> str:
    return f"/accounts/{target.account_id}/pages/projects/{target.project_name}/deployments"


def _content_type(path: Path) -> str:
    if path.suffix == ".wasm":
        return "application/wasm"
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"


def read_artifact(part: ArtifactPart) -> MultipartFile:
    """Read one artifact into a multipart tuple; the file is always closed."""
    try:
        with part.path.open("rb") as f:
            data = f.read()
    except OSError as e:
        raise ArtifactReadError(str(part.path), e.strerror or str(e))
    return (part.role, (part.path.name, data, _content_type(part.path)))


def parse_deployment_url(result: Any) -> str:
    """Extract the optional deployment URL; a missing URL is not an error."""
    if isinstance(result, dict):
        url = result.get("url")
        if isinstance(url, str):
            return url
    return ""


class DeploymentUploader:
    def __init__(self, *, api: CloudflareApi, keystore: KeyStore, log: Optional[LogFn] = None) -> None:
        self.api = api
        self.keystore = keystore
        self.log = log or _silent

    def _required(self, key: str, field: str) -> str:
        # An unreadable store counts as not configured.
        try:
            value = self.keystore.get(key)
        except KeyStoreError as e:
            raise ConfigurationError(field) from e
        if not value:
            raise ConfigurationError(field)
        return value

    def pages_token(self) -> str:
        return self._required(keys.PAGES_TOKEN, "pages token")

    def pages_target(self) -> PagesTarget:
        return PagesTarget(
            account_id=self._required(keys.ACCOUNT_ID, "account_id"),
            project_name=self._required(keys.PROJECT, "project"),
        )

    def is_pages_configured(self) -> bool:
        return bool(self.keystore.get(keys.PAGES_TOKEN))

    def is_worker_configured(self) -> bool:
        return bool(self.keystore.get(keys.WORKER_TOKEN))

    def deploy_pages(self, artifacts: ArtifactSet) -> str:
        """Deploy using the account and project recorded by setup."""
        try:
            token = self.pages_token()
            target = self.pages_target()
        except CloudflareError as e:
            raise e.within("deploy pages")
        return self._upload(token, target, artifacts)

    def deploy(self, target: DeploymentTarget, artifacts: ArtifactSet) -> str:
        """Upload ``artifacts`` to ``target`` and return the deployment URL ("" if none).

        Worker targets fail with DeployNotImplemented before touching the store or
        the network.
        """
        if isinstance(target, WorkerTarget):
            raise DeployNotImplemented("worker deploy requires module bundling").within("deploy worker")
        try:
            token = self.pages_token()
            if not target.account_id:
                raise ConfigurationError("account_id")
            if not target.project_name:
                raise ConfigurationError("project")
        except CloudflareError as e:
            raise e.within("deploy pages")
        return self._upload(token, target, artifacts)

    def _upload(self, token: str, target: PagesTarget, artifacts: ArtifactSet) -> str:
        self.log("Deploying to Cloudflare Pages project:", target.project_name)
        try:
            files = [read_artifact(part) for part in artifacts.parts]
            result = self.api.post_multipart(deployments_path(target), token, files)
        except CloudflareError as e:
            raise e.within("deploy pages")

        url = parse_deployment_url(result)
        self.log("Deployment URL:", url)
        return url
