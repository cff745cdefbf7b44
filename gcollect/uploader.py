"""
Upload of the finished bundle to a remote collector.

The collector accepts one multipart POST carrying the bundle (``file``), the
sending host (``hostname``) and a bearer token. Every failure is classified
into an UploadError; none of them affects the run's exit code.
"""

import os
from dataclasses import dataclass
from typing import Optional

import requests

from gcollect.artifacts import get_hostname
from gcollect.errors import UploadError, UploadFailure

USER_AGENT = "gcollect-uploader"


@dataclass(frozen=True)
class UploadResult:
    bundle_path: str
    status_code: int
    checksum: Optional[str] = None


def _classify_transport_error(error: requests.exceptions.RequestException) -> str:
    if isinstance(error, requests.exceptions.Timeout):
        return "timeout"
    if isinstance(error, requests.exceptions.ConnectionError):
        text = str(error)
        if any(marker in text for marker in ("NameResolutionError", "Name or service not known",
                                             "nodename nor servname", "getaddrinfo failed",
                                             "Temporary failure in name resolution")):
            return "dns"
        return "connection"
    return "other"


def _extract_checksum(response: requests.Response) -> Optional[str]:
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict) and payload.get("checksum"):
        return str(payload["checksum"])
    return None


def upload_bundle(bundle_path: str, endpoint: str, token: str, timeout: float,
                  hostname: Optional[str] = None,
                  session: Optional[requests.Session] = None,
                  logger=None) -> UploadResult:
    """
    Upload `bundle_path` to `endpoint`.

    Args:
        bundle_path: The bundle to send. Must exist.
        endpoint: Collector URL.
        token: Bearer token sent in the Authorization header.
        timeout: Connect/read timeout in seconds.
        hostname: Value of the hostname field; defaults to this host.
        session: requests.Session to use (a new one otherwise).
        logger: Optional logger.

    Returns:
        UploadResult with the HTTP status and the server checksum, if any.

    Raises:
        UploadError: Classified by UploadFailure.
    """
    if not os.path.isfile(bundle_path):
        raise UploadError(f"Bundle not found: {bundle_path}", reason=UploadFailure.MISSING_FILE)

    hostname = hostname or get_hostname()
    headers = {"User-Agent": USER_AGENT}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    if logger:
        size_mb = os.path.getsize(bundle_path) / (1024 * 1024)
        logger.info(f"Uploading {os.path.basename(bundle_path)} ({size_mb:.1f} MB) to {endpoint}...")

    sess = session or requests.Session()
    try:
        with open(bundle_path, 'rb') as bundle:
            response = sess.post(
                endpoint,
                files={"file": (os.path.basename(bundle_path), bundle, "application/gzip")},
                data={"hostname": hostname},
                headers=headers,
                timeout=timeout,
            )
    except requests.exceptions.RequestException as e:
        detail = _classify_transport_error(e)
        raise UploadError(f"Upload failed: {detail} error", reason=UploadFailure.NETWORK,
                          detail=detail) from e
    except OSError as e:
        raise UploadError(f"Could not read bundle {bundle_path}: {e}", reason=UploadFailure.MISSING_FILE,
                          detail="unreadable") from e
    finally:
        if session is None:
            sess.close()

    status = response.status_code
    if status == 200:
        return UploadResult(bundle_path=bundle_path, status_code=status,
                            checksum=_extract_checksum(response))
    if status == 403:
        raise UploadError("Upload rejected: authentication failed", reason=UploadFailure.AUTH,
                          status_code=status)
    if status == 400:
        raise UploadError("Upload rejected: bad request", reason=UploadFailure.BAD_REQUEST,
                          status_code=status, body=response.text)
    if status == 413:
        raise UploadError("Upload rejected: bundle too large", reason=UploadFailure.TOO_LARGE,
                          status_code=status)
    if 500 <= status < 600:
        raise UploadError(f"Upload failed: server error {status}", reason=UploadFailure.SERVER,
                          status_code=status)
    raise UploadError(f"Upload failed: unexpected response {status}", reason=UploadFailure.UNEXPECTED,
                      status_code=status, body=response.text)
