"""
Cloudinary HTTP client helpers.

Used endpoints:
- POST /v1_1/{cloud}/image/upload   -> {"secure_url": "...", "public_id": "..."}
- POST /v1_1/{cloud}/image/destroy  -> {"result": "ok" | "not found"}

Requests are signed: sha1 over the sorted `key=value` pairs joined with `&`,
followed by the API secret.
"""

from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
from starlette.concurrency import run_in_threadpool

DEFAULT_BASE_URL = "https://api.cloudinary.com"


# Image host failures are explicit and separable from other runtime errors.
class CloudinaryError(RuntimeError):
    pass


@dataclass(frozen=True)
class UploadedImage:
    url: str
    public_id: str


def sign_params(params: dict[str, Any], api_secret: str) -> str:
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] not in (None, ""))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryClient:
    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        *,
        folder: str = "",
        timeout_s: float = 60.0,
        base_url: str = DEFAULT_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.cloud_name = (cloud_name or "").strip()
        self.api_key = (api_key or "").strip()
        self.api_secret = (api_secret or "").strip()
        self.folder = (folder or "").strip()
        self.timeout_s = timeout_s
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._transport = transport

    def _require_credentials(self) -> None:
        if not (self.cloud_name and self.api_key and self.api_secret):
            raise CloudinaryError("Cloudinary credentials are not configured.")

    def _signed_form(self, params: dict[str, Any]) -> dict[str, str]:
        params = {k: v for (k, v) in params.items() if v not in (None, "")}
        params["timestamp"] = int(time.time())
        signature = sign_params(params, self.api_secret)
        form = {k: str(v) for (k, v) in params.items()}
        form["api_key"] = self.api_key
        form["signature"] = signature
        return form

    async def _post(self, path: str, *, data: dict[str, str], files: dict | None = None) -> dict[str, Any]:
        url = f"/v1_1/{self.cloud_name}/image/{path}"
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_s,
                transport=self._transport,
            ) as client:
                resp = await client.post(url, data=data, files=files)
        except httpx.HTTPError as exc:
            raise CloudinaryError(f"Cloudinary {path} request failed: {exc}") from exc

        if resp.status_code != 200:
            # Avoid dumping huge bodies; include a small snippet.
            body = resp.text[:500]
            raise CloudinaryError(f"Cloudinary {path} request failed: {resp.status_code} {body}")

        try:
            data_out: Any = resp.json()
        except ValueError as exc:
            raise CloudinaryError(f"Cloudinary {path} returned invalid JSON.") from exc
        if not isinstance(data_out, dict):
            raise CloudinaryError(f"Cloudinary {path} returned an unexpected payload.")
        return data_out

    async def upload_image(self, path: str | Path) -> UploadedImage:
        """
        Upload a local image file and return its hosted URL and public id.
        """
        self._require_credentials()
        file_path = Path(path)
        form = self._signed_form({"folder": self.folder})

        try:
            content = await run_in_threadpool(file_path.read_bytes)
        except OSError as exc:
            raise CloudinaryError(f"Could not read upload file {file_path.name}.") from exc

        data = await self._post("upload", data=form, files={"file": (file_path.name, content)})

        url = data.get("secure_url") or data.get("url")
        public_id = data.get("public_id")
        if not isinstance(url, str) or not url or not isinstance(public_id, str) or not public_id:
            raise CloudinaryError("Cloudinary returned no image URL or public id.")
        return UploadedImage(url=url, public_id=public_id)

    async def remove_image(self, public_id: str) -> bool:
        """
        Delete a hosted image. Returns False when Cloudinary does not know the id.
        """
        self._require_credentials()
        public_id = (public_id or "").strip()
        if not public_id:
            raise CloudinaryError("public_id is empty.")

        data = await self._post("destroy", data=self._signed_form({"public_id": public_id}))
        return data.get("result") == "ok"
