from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
import msgpack

from statink_exporter.core.text import name_aliases
from statink_exporter.exporters.base.client import BaseHttpClient, json_or_none
from statink_exporter.exporters.base.errors import (
    ConfigurationError,
    MappingError,
    UpstreamAPIError,
)
from statink_exporter.exporters.base.types import SessionType

from .constants import STAT_INK_API_KEY_LENGTH, USER_AGENT
from .models import BattlePostBody, CatalogEntry, CoopPostBody, StatInkPostResponse

logger = logging.getLogger(__name__)

STAGE_PATH = "/api/v3/stage"
WEAPON_PATH = "/api/v3/weapon?full=1"
ABILITY_PATH = "/api/v3/ability?full=1"
SALMON_WEAPON_PATH = "/api/v3/salmon/weapon?full=1"

UUID_LIST_PATHS: dict[str, str] = {
    "VsInfo": "/api/v3/s3s/uuid-list",
    "CoopInfo": "/api/v3/salmon/uuid-list",
}

BATTLE_PATH = "/api/v3/battle"
SALMON_PATH = "/api/v3/salmon"


def check_api_key(api_key: str) -> str:
    if len(api_key) != STAT_INK_API_KEY_LENGTH:
        raise ConfigurationError("Invalid stat.ink API key")
    return api_key


def _check_response(resp: httpx.Response, message: str) -> None:
    if resp.status_code // 100 != 2:
        raise UpstreamAPIError(message, response=resp, json=json_or_none(resp))


class StatInkClient:
    """
    stat.ink v3 API.

    Reference tables (stage/weapon/ability/salmon weapon) are fetched once per client
    and cached for its lifetime. All catalog fetches go through one lock, so at most one
    is in flight per client even across categories.
    """

    def __init__(self, *, http: BaseHttpClient, api_key: str) -> None:
        self.http = http
        self.api_key = check_api_key(api_key)
        self._fetch_lock = asyncio.Lock()
        self._cache: dict[str, list[CatalogEntry]] = {}
        self._salmon_weapon_map: dict[str, str] = {}
        self._salmon_weapon_map_lock = asyncio.Lock()

    def _headers(self) -> dict[str, str]:
        return {
            "User-Agent": USER_AGENT,
            "Authorization": f"Bearer {self.api_key}",
        }

    # -----------------------------
    # Catalogs
    # -----------------------------

    async def _get_cached(self, path: str) -> list[CatalogEntry]:
        async with self._fetch_lock:
            cached = self._cache.get(path)
            if cached is not None:
                return cached

            logger.debug("Fetching stat.ink catalog %s", path)
            resp = await self.http.get(path, headers=self._headers())
            _check_response(resp, "Failed to fetch data from stat.ink")

            data = json_or_none(resp)
            if not isinstance(data, list):
                raise UpstreamAPIError(
                    f"Expected a list from {path}, got {type(data).__name__}",
                    response=resp,
                    json=data,
                )
            entries = [CatalogEntry.model_validate(i) for i in data if isinstance(i, dict)]
            self._cache[path] = entries
            return entries

    async def get_stage(self) -> list[CatalogEntry]:
        return await self._get_cached(STAGE_PATH)

    async def get_weapon(self) -> list[CatalogEntry]:
        return await self._get_cached(WEAPON_PATH)

    async def get_ability(self) -> list[CatalogEntry]:
        return await self._get_cached(ABILITY_PATH)

    async def get_salmon_weapon(self) -> list[CatalogEntry]:
        return await self._get_cached(SALMON_WEAPON_PATH)

    async def resolve_ability_key(self, display_name: str) -> str | None:
        for ability in await self.get_ability():
            if display_name in ability.name.values():
                return ability.key
        return None

    async def salmon_weapon_map(self) -> dict[str, str]:
        """Display name (every locale, plus dot-spelling aliases) -> salmon weapon key."""

        async with self._salmon_weapon_map_lock:
            if not self._salmon_weapon_map:
                self._salmon_weapon_map = await self._build_salmon_weapon_map()
            return self._salmon_weapon_map

    async def _build_salmon_weapon_map(self) -> dict[str, str]:
        weapon_map: dict[str, str] = {}
        for weapon in await self.get_salmon_weapon():
            for locale_name in weapon.name.values():
                for name in name_aliases(locale_name):
                    prev_key = weapon_map.get(name)
                    if prev_key is None:
                        weapon_map[name] = weapon.key
                    elif prev_key != weapon.key:
                        logger.warning(
                            "Duplicate salmon weapon name %r: keeping %s, ignoring %s",
                            name,
                            prev_key,
                            weapon.key,
                        )
        if not weapon_map:
            raise MappingError("Failed to get salmon weapon map")
        return weapon_map

    async def resolve_salmon_weapon_key(self, display_name: str) -> str | None:
        return (await self.salmon_weapon_map()).get(display_name)

    # -----------------------------
    # Uploaded ids
    # -----------------------------

    async def uuid_list(self, session_type: SessionType) -> list[str]:
        resp = await self.http.get(UUID_LIST_PATHS[session_type], headers=self._headers())
        _check_response(resp, "Failed to fetch uuid list from stat.ink")

        data = json_or_none(resp)
        if not isinstance(data, list):
            message = data.get("message") if isinstance(data, dict) else None
            raise UpstreamAPIError(
                message or "Unexpected uuid list response", response=resp, json=data
            )
        return [str(i) for i in data]

    # -----------------------------
    # Uploads
    # -----------------------------

    async def _post(self, path: str, body: dict[str, Any], message: str) -> StatInkPostResponse:
        resp = await self.http.post(
            path,
            content=msgpack.packb(body, use_bin_type=True),
            headers={**self._headers(), "Content-Type": "application/x-msgpack"},
        )

        data = json_or_none(resp)
        if resp.status_code not in (200, 201):
            raise UpstreamAPIError(message, response=resp, json=data)

        if not isinstance(data, dict):
            data = {}
        if data.get("error"):
            raise UpstreamAPIError(message, response=resp, json=data)

        return StatInkPostResponse.model_validate(data)

    async def post_battle(self, body: BattlePostBody) -> StatInkPostResponse:
        return await self._post(BATTLE_PATH, body.to_wire(), "Failed to export battle")

    async def post_coop(self, body: CoopPostBody) -> StatInkPostResponse:
        return await self._post(SALMON_PATH, body.to_wire(), "Failed to export job")
