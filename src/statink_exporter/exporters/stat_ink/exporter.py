from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from statink_exporter.core.config import Settings
from statink_exporter.exporters.base.adapter import GameExporter
from statink_exporter.exporters.base.client import BaseHttpClient
from statink_exporter.exporters.base.types import ExportResult, SessionType
from statink_exporter.splatnet.ids import candidate_ids
from statink_exporter.splatnet.models import CoopSession, Session, VersusSession

from .battle import BattleMapper
from .client import StatInkClient, check_api_key
from .coop import CoopMapper
from .models import BattlePostBody, CoopPostBody

logger = logging.getLogger(__name__)


@dataclass
class StatInkExporter(GameExporter):
    """
    Uploads SplatNet 3 sessions to stat.ink.

    Mapping always completes before the POST, so a session that cannot be mapped
    never reaches the network.
    """

    api: StatInkClient
    upload_mode: str
    name: str = "stat.ink"

    battle_mapper: BattleMapper = field(init=False, repr=False)
    coop_mapper: CoopMapper = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.battle_mapper = BattleMapper(self.api, upload_mode=self.upload_mode)
        self.coop_mapper = CoopMapper(self.api, upload_mode=self.upload_mode)

    @classmethod
    def from_settings(
        cls, settings: Settings, *, http: BaseHttpClient | None = None
    ) -> StatInkExporter:
        api_key = check_api_key(settings.require_stat_ink_api_key())
        if http is None:
            http = BaseHttpClient(
                base_url=settings.stat_ink_base_url,
                timeout_s=settings.http_timeout_s,
                connect_timeout_s=settings.http_connect_timeout_s,
            )
        api = StatInkClient(http=http, api_key=api_key)
        return cls(api=api, upload_mode=settings.upload_mode)

    async def aclose(self) -> None:
        await self.api.http.aclose()

    async def __aenter__(self) -> StatInkExporter:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def map_game(self, session: Session) -> BattlePostBody | CoopPostBody:
        if isinstance(session, VersusSession):
            return await self.battle_mapper.map(session)
        if isinstance(session, CoopSession):
            return await self.coop_mapper.map(session)
        raise TypeError(f"Unknown session type {type(session).__name__}")

    async def export_game(self, session: Session) -> ExportResult:
        body = await self.map_game(session)
        if isinstance(body, BattlePostBody):
            resp = await self.api.post_battle(body)
        else:
            resp = await self.api.post_coop(body)

        logger.info("Exported %s %s -> %s", session.type, body.uuid, resp.url)
        return ExportResult(status="success", url=resp.url)

    async def not_uploaded(self, session_type: SessionType, ids: Sequence[str]) -> list[str]:
        uploaded = set(await self.api.uuid_list(session_type))

        out = [i for i in ids if not any(c in uploaded for c in candidate_ids(i))]
        logger.debug(
            "%d of %d %s sessions not on stat.ink yet", len(out), len(ids), session_type
        )
        return out
