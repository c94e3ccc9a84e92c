from __future__ import annotations

import logging
from typing import Optional

import requests
from requests import Session
from requests.adapters import HTTPAdapter

from infrastructure.storage import StorageClient

log = logging.getLogger("podsite.audio.fetch")

MAX_AUDIO_BYTES = 512 * 1024 * 1024


class AudioFetchError(Exception):
    """The audio for an episode could not be retrieved."""


def build_http_session() -> Session:
    session = requests.Session()
    adapter = HTTPAdapter(pool_connections=4, pool_maxsize=8, max_retries=2)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def fetch_audio_bytes(
    audio_url: str,
    storage: Optional[StorageClient] = None,
    *,
    http: Optional[Session] = None,
    timeout: float = 120.0,
) -> bytes:
    """Read an episode's audio, straight from the bucket when the URL points into it."""
    if storage is not None:
        key = storage.key_from_url(audio_url)
        if key:
            data = storage.download_bytes(key)
            if data is None:
                raise AudioFetchError(f"Audio object missing from storage: {key}")
            return data

    client = http or build_http_session()
    try:
        resp = client.get(audio_url, timeout=timeout, stream=True)
        resp.raise_for_status()
        chunks = []
        total = 0
        for chunk in resp.iter_content(chunk_size=1 << 20):
            total += len(chunk)
            if total > MAX_AUDIO_BYTES:
                raise AudioFetchError(f"Audio exceeds {MAX_AUDIO_BYTES} bytes: {audio_url}")
            chunks.append(chunk)
    except requests.RequestException as exc:
        raise AudioFetchError(f"Download failed for {audio_url}: {exc}") from exc
    finally:
        if http is None:
            client.close()
    log.info("[fetch] downloaded %d bytes", total)
    return b"".join(chunks)
