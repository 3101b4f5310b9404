"""Locate and fetch imported schema files that are not available locally."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import ResolveError

LOGGER = logging.getLogger(__name__)

GOOGLE_PREFIX = "google/"
GOOGLE_PROTOBUF_PREFIX = "google/protobuf"
OPENAPIV2_PREFIX = "protoc-gen-openapiv2/"
GOOGLEAPIS_GITHUB_PATH = "github.com/googleapis/googleapis"
GRPC_GATEWAY_GITHUB_PATH = "github.com/grpc-ecosystem/grpc-gateway"
GITHUB_DOMAIN = "github.com"
GITHUB_DOMAIN_PREFIX = GITHUB_DOMAIN + "/"
GITHUB_DOWNLOAD_LINK = "https://raw.githubusercontent.com/{user}/{repo}/master/{path}"
FILE_SCHEME = "file://"
DEFAULT_TIMEOUT = 30


def create_session(retries: int = 3, backoff_factor: float = 0.5) -> requests.Session:
    """Create a session that retries transient download failures."""

    session = requests.Session()
    retry_strategy = Retry(
        total=retries,
        backoff_factor=backoff_factor,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["HEAD", "GET"],
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def dependency_path(github_url: str, import_path: str) -> Tuple[str, bool]:
    """Map an import path to a download link or local file.

    Returns the resource and whether it is a local file. Without a custom
    ``github_url``, ``github.com/<user>/<repo>/<path>`` becomes a raw GitHub
    link; a custom URL replaces the GitHub host and may point at a plain
    directory or a ``file://`` location.
    """

    is_github = import_path.startswith(GITHUB_DOMAIN_PREFIX)
    if github_url and is_github:
        scheme = urlparse(github_url).scheme
        if len(scheme) <= 1:
            # Plain directory; a one-letter scheme is a Windows drive.
            relative = import_path.replace(GITHUB_DOMAIN, "", 1).lstrip("/")
            return str(Path(github_url) / Path(relative)), True
        if scheme == "file":
            root = github_url[len(FILE_SCHEME) :]
            return import_path.replace(GITHUB_DOMAIN, root, 1), True
        return import_path.replace(GITHUB_DOMAIN, github_url.rstrip("/"), 1), False

    if not is_github:
        return import_path, False

    parts = import_path.split("/", 3)
    if len(parts) < 4:
        return import_path, False
    _, user, repo, path = parts
    return GITHUB_DOWNLOAD_LINK.format(user=user, repo=repo, path=path), False


def artifactory_errors(body: bytes) -> str:
    """Extract ``{"errors": [{"status", "message"}]}`` details, if present."""

    try:
        payload = json.loads(body)
    except ValueError:
        return ""
    errors = payload.get("errors") if isinstance(payload, dict) else None
    if not isinstance(errors, list) or not errors:
        return ""
    lines = []
    for error in errors:
        if not isinstance(error, dict):
            continue
        lines.append(f"error code: {error.get('status', 0)}, message: {error.get('message', '')}")
    return "\n".join(lines)


class ImportResolver:
    """Resolve imports for the compiler and keep their contents in memory.

    Fetched files are written below ``cache_dir`` under their import path so
    that the compiler can add the directory to its include path.
    """

    def __init__(
        self,
        cache_dir: Path,
        github_url: str = "",
        module_name: str = "",
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
        timeout: float = DEFAULT_TIMEOUT,
        search_root: Optional[Path] = None,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.github_url = github_url
        self.module_prefix = f"{module_name}/" if module_name else ""
        self.session = session or create_session()
        self.logger = logger or LOGGER
        self.timeout = timeout
        self.search_root = Path(search_root) if search_root else Path.cwd()
        self._cache: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def needs_fetch(self, import_path: str, roots: Sequence[Path] = ()) -> bool:
        """Return whether neither ``search_root`` nor any of ``roots`` holds the import."""

        if import_path.startswith(GOOGLE_PROTOBUF_PREFIX):
            return False
        for root in (self.search_root, *roots):
            if (Path(root) / import_path).is_file():
                return False
        return not (self.cache_dir / import_path).is_file()

    def materialize(self, import_path: str, roots: Sequence[Path] = ()) -> Optional[Path]:
        """Make ``import_path`` available under the cache directory.

        Returns the written file, or ``None`` when the compiler can already
        find the import on its own.
        """

        if not self.needs_fetch(import_path, roots):
            return None
        content = self.fetch(import_path)
        target = self.cache_dir / import_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        return target

    def fetch(self, import_path: str) -> bytes:
        cached = self._cached(import_path)
        if cached is not None:
            return cached

        if self.module_prefix and import_path.startswith(self.module_prefix):
            local = self.search_root / import_path[len(self.module_prefix) :]
            content = self._read_local(str(local))
            self._store(import_path, content)
            return content

        source = import_path
        if source.startswith(GOOGLE_PREFIX):
            source = f"{GOOGLEAPIS_GITHUB_PATH}/{source}"
        elif source.startswith(OPENAPIV2_PREFIX):
            source = f"{GRPC_GATEWAY_GITHUB_PATH}/{source}"

        resource, is_local = dependency_path(self.github_url, source)
        self.logger.info("Fetching proto dependency, file: %s, url: %s", import_path, resource)
        if is_local:
            content = self._read_local(resource)
        else:
            content = self._download(import_path, resource)
        self._store(import_path, content)
        return content

    def _download(self, import_path: str, resource: str) -> bytes:
        try:
            response = self.session.get(resource, timeout=self.timeout)
        except (
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
            requests.exceptions.InvalidURL,
        ) as error:
            raise ResolveError(f"'{resource}' is not valid link or local file doesn't exist") from error
        except requests.exceptions.RequestException as error:
            raise ResolveError(
                f"failed to download file from {resource} for proto dependency {import_path}: {error}"
            ) from error

        body = response.content
        if response.status_code != 200:
            details = artifactory_errors(body) or body.decode("utf-8", errors="replace")
            message = (
                f"failed to download file from {resource} for proto dependency {import_path}, "
                f"status code: {response.status_code}"
            )
            if details:
                message = f"{message}, errors: {details}"
            raise ResolveError(message)
        if not body:
            raise ResolveError(f"file downloaded from {resource} for proto dependency {import_path} is empty")
        return body

    def _read_local(self, resource: str) -> bytes:
        try:
            return Path(resource).read_bytes()
        except OSError as error:
            raise ResolveError(f"'{resource}' is not valid link or local file doesn't exist") from error

    def _cached(self, import_path: str) -> Optional[bytes]:
        with self._lock:
            return self._cache.get(import_path)

    def _store(self, import_path: str, content: bytes) -> None:
        with self._lock:
            self._cache[import_path] = content
