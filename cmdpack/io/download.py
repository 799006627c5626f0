# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""HTTP(S) artifact download for cmdpack.

Configurations may reference remote artifacts by URL. This module fetches
them into a local cache so they can be staged like any other file.

Key Features:

- **Transport retries** - The requests session retries transient failures
  (429, 500, 502, 503, 504) with exponential backoff via urllib3.util.Retry.
- **Atomic Writes** - Downloads go to a temporary .part file that is renamed
  on success, so a partial file never appears in the cache.
- **Integrity Verification** - SHA-256 is computed while streaming and
  checked against an expected digest when one is given.
- **Filename Detection** - Content-Disposition wins over the URL path.

Example:
    ```python
    from pathlib import Path
    from cmdpack.io import download_file

    path, sha256 = download_file(
        url="https://repo.example.com/libs/util-2.1.jar",
        destination_folder=Path("build/cache/configurations/lib"),
    )
    ```
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from cmdpack.exceptions import ResolutionError

# Stream size per chunk (1 MiB)
DEFAULT_CHUNK = 1024 * 1024


def _filename_from_cd(content_disposition: str) -> str | None:
    """Extract a filename from a Content-Disposition header if present.

    Example header:
      'attachment; filename="util-2.1.jar"'
    """
    if not content_disposition:
        return None
    parts = [s.strip() for s in content_disposition.split(";")]
    for part in parts:
        if part.lower().startswith("filename="):
            value = part.split("=", 1)[1].strip().strip('"')
            return value or None
    return None


def filename_from_url(url: str) -> str:
    """Derive a filename from the URL path. Fallback to a generic name if empty."""
    name = Path(urlparse(url).path).name
    return name or "download.bin"


def sha256_file(path: Path) -> str:
    """Compute the SHA-256 of a file on disk."""
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(DEFAULT_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()


def make_session() -> requests.Session:
    """Create a requests.Session with retry/backoff defaults.

    - Retries on common transient status codes.
    - Applies exponential backoff.
    - Sets a User-Agent identifying cmdpack.
    """
    s = requests.Session()
    retries = Retry(
        total=5,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET", "HEAD"),
        raise_on_status=False,
    )
    s.headers.update(
        {
            "User-Agent": "cmdpack/0.1",
            "Accept-Encoding": "identity",
        }
    )
    s.mount("http://", HTTPAdapter(max_retries=retries))
    s.mount("https://", HTTPAdapter(max_retries=retries))
    return s


def download_file(
    url: str,
    destination_folder: Path,
    *,
    expected_sha256: str | None = None,
    timeout: int = 60,
) -> tuple[Path, str]:
    """Download a URL into destination_folder.

    Follows redirects. Writes to <filename>.part then renames to <filename>
    on success. Validates the checksum if expected_sha256 is set.

    Args:
        url: Source URL.
        destination_folder: Folder to save into (created if missing).
        expected_sha256: Optional known SHA-256 (hex). On mismatch the file
            is removed and ResolutionError is raised.
        timeout: Per-request timeout (seconds).

    Returns:
        A tuple (file_path, sha256_hex).

    Raises:
        ResolutionError: For HTTP errors (after retries), connection
            failures, or a checksum mismatch.
    """
    from cmdpack.logging import get_global_logger

    logger = get_global_logger()
    destination_folder = Path(destination_folder)
    destination_folder.mkdir(parents=True, exist_ok=True)

    logger.verbose("HTTP", f"GET {url}")

    with make_session() as session:
        try:
            resp = session.get(url, stream=True, allow_redirects=True, timeout=timeout)
            resp.raise_for_status()
        except requests.RequestException as err:
            raise ResolutionError(f"download failed for {url}: {err}") from err

        logger.debug("HTTP", f"Response: {resp.status_code} {resp.reason}")

        # Content-Disposition beats URL when naming the file.
        cd_name = _filename_from_cd(resp.headers.get("Content-Disposition", ""))
        filename = cd_name or filename_from_url(resp.url)
        target = destination_folder / filename
        tmp = target.with_suffix(target.suffix + ".part")

        sha = hashlib.sha256()
        with tmp.open("wb") as f:
            for chunk in resp.iter_content(chunk_size=DEFAULT_CHUNK):
                if not chunk:
                    continue
                f.write(chunk)
                sha.update(chunk)
        resp.close()

    digest = sha.hexdigest()
    tmp.replace(target)

    if expected_sha256 and digest.lower() != expected_sha256.lower():
        target.unlink(missing_ok=True)
        raise ResolutionError(
            f"sha256 mismatch for {filename}: got {digest}, expected {expected_sha256}"
        )

    logger.verbose("HTTP", f"Downloaded {target.name} ({digest})")
    return target, digest
