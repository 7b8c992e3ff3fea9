from __future__ import annotations

import logging
import mimetypes
import os
from dataclasses import dataclass
from typing import Optional

import httpx

from .errors import MetadataUploadError
from .project_constants import DEFAULT_IMAGE_PATH, PUMP_FUN_IPFS_URL

log = logging.getLogger(__name__)

_UPLOAD_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:126.0) Gecko/20100101 Firefox/126.0",
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.5",
    "Referer": "https://www.pump.fun/create",
    "Origin": "https://www.pump.fun",
}


@dataclass(frozen=True)
class TokenSpec:
    name: str
    symbol: str
    description: str
    image_path: Optional[str] = None

    @property
    def resolved_image_path(self) -> str:
        return self.image_path or DEFAULT_IMAGE_PATH


def upload_metadata(
    client: httpx.Client,
    token: TokenSpec,
    url: str = PUMP_FUN_IPFS_URL,
) -> str:
    """Uploads the image and token fields to Pump.fun IPFS; returns metadataUri."""
    image_path = token.resolved_image_path
    log.info("Uploading metadata to pump.fun IPFS (image: %s)...", image_path)

    try:
        with open(image_path, "rb") as f:
            image_data = f.read()
    except OSError as e:
        raise MetadataUploadError(f"Cannot read token image {image_path}: {e}") from e

    mime = mimetypes.guess_type(image_path)[0] or "image/png"
    form = {
        "name": token.name,
        "symbol": token.symbol,
        "description": token.description,
        "showName": "true",
        "createdOn": "https://pump.fun",
        "twitter": "",
        "telegram": "",
        "website": "",
    }
    files = {"file": (os.path.basename(image_path), image_data, mime)}

    try:
        resp = client.post(url, data=form, files=files, headers=_UPLOAD_HEADERS)
    except httpx.HTTPError as e:
        raise MetadataUploadError(f"Metadata upload failed: {e}") from e

    if not resp.is_success:
        raise MetadataUploadError(f"Failed to upload metadata: HTTP {resp.status_code}")

    try:
        data = resp.json()
    except ValueError as e:
        raise MetadataUploadError(f"Metadata upload returned invalid JSON: {e}") from e
    metadata_uri = data.get("metadataUri") if isinstance(data, dict) else None
    if not isinstance(metadata_uri, str) or not metadata_uri:
        raise MetadataUploadError("No metadataUri in upload response.")
    return metadata_uri
