from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class SplatNetModel(BaseModel):
    """SplatNet 3 payloads are camelCase JSON; fields here are snake_case."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class IdRef(SplatNetModel):
    id: str


class NamedRef(SplatNetModel):
    id: str
    name: str


class ImageUrl(SplatNetModel):
    pathname: str


class Image(SplatNetModel):
    # File-exported sessions keep only the simplified url.
    url: str | ImageUrl | None = None

    @property
    def path(self) -> str:
        if isinstance(self.url, ImageUrl):
            return self.url.pathname
        return self.url or ""


class NameWithImage(SplatNetModel):
    name: str
    image: Image | None = None


# -----------------------------
# Versus
# -----------------------------


class Color(SplatNetModel):
    r: float
    g: float
    b: float
    a: float


class GearPower(SplatNetModel):
    name: str


class PlayerGear(SplatNetModel):
    primary_gear_power: GearPower
    additional_gear_powers: list[GearPower] = Field(default_factory=list)


class VsPlayerResult(SplatNetModel):
    kill: int
    death: int
    assist: int
    special: int
    noroshi_try: int | None = None


class VsPlayer(SplatNetModel):
    id: str | None = None
    name: str
    name_id: str | None = None
    byname: str | None = None
    is_myself: bool = False
    weapon: IdRef
    paint: int = 0
    crown: bool = False
    head_gear: PlayerGear
    clothing_gear: PlayerGear
    shoes_gear: PlayerGear
    result: VsPlayerResult | None = None


class VsTeamResult(SplatNetModel):
    paint_ratio: float | None = None
    score: int | None = None


class VsTeam(SplatNetModel):
    color: Color
    result: VsTeamResult | None = None
    fest_team_name: str | None = None
    tricolor_role: str | None = None
    players: list[VsPlayer] = Field(default_factory=list)


class VsMode(SplatNetModel):
    id: str
    mode: str


class VsRule(SplatNetModel):
    rule: str


class BankaraMatch(SplatNetModel):
    mode: str | None = None
    earned_udemae_point: int | None = None


class FestMatch(SplatNetModel):
    dragon_match_type: str = "NORMAL"
    contribution: int | None = None
    my_fest_power: float | None = None


class XMatch(SplatNetModel):
    last_x_power: float | None = None


class Award(SplatNetModel):
    name: str


class VsHistoryDetail(SplatNetModel):
    id: str
    vs_mode: VsMode
    vs_rule: VsRule
    vs_stage: NamedRef
    judgement: str
    knockout: str | None = None
    my_team: VsTeam
    other_teams: list[VsTeam] = Field(default_factory=list)
    bankara_match: BankaraMatch | None = None
    fest_match: FestMatch | None = None
    x_match: XMatch | None = None
    awards: list[Award] = Field(default_factory=list)
    played_time: datetime
    duration: int


class ListNode(SplatNetModel):
    udemae: str | None = None


class BankaraMatchChallenge(SplatNetModel):
    win_count: int = 0
    lose_count: int = 0
    is_promo: bool = False
    is_udemae_up: bool | None = None
    udemae_after: str | None = None
    earned_udemae_point: int | None = None


class ChallengeProgress(SplatNetModel):
    index: int
    win_count: int
    lose_count: int


class XMatchMeasurement(SplatNetModel):
    state: str
    x_power_after: float | None = None


class VsGroupInfo(SplatNetModel):
    x_match_measurement: XMatchMeasurement | None = None


class RankState(SplatNetModel):
    rank: str
    rank_point: int


class VersusSession(SplatNetModel):
    type: Literal["VsInfo"] = "VsInfo"
    detail: VsHistoryDetail
    list_node: ListNode | None = None
    bankara_match_challenge: BankaraMatchChallenge | None = None
    challenge_progress: ChallengeProgress | None = None
    group_info: VsGroupInfo | None = None
    rank_state: RankState | None = None
    rank_before_state: RankState | None = None

    @property
    def source_id(self) -> str:
        return self.detail.id


# -----------------------------
# Salmon Run
# -----------------------------


class CoopPlayer(SplatNetModel):
    name: str
    name_id: str | None = None
    byname: str | None = None
    species: str | None = None
    uniform: IdRef


class CoopPlayerResult(SplatNetModel):
    player: CoopPlayer
    weapons: list[NameWithImage] = Field(default_factory=list)
    special_weapon: NameWithImage | None = None
    defeat_enemy_count: int = 0
    deliver_count: int = 0
    golden_assist_count: int = 0
    golden_deliver_count: int = 0
    rescue_count: int = 0
    rescued_count: int = 0


class CoopEnemyResult(SplatNetModel):
    enemy: IdRef
    pop_count: int
    team_defeat_count: int
    defeat_count: int


class CoopWaveResult(SplatNetModel):
    wave_number: int
    water_level: int
    event_wave: IdRef | None = None
    # Extra (king) waves report no quota/delivery.
    deliver_norm: int | None = None
    golden_pop_count: int = 0
    team_deliver_count: int | None = None
    special_weapons: list[NameWithImage] = Field(default_factory=list)


class CoopBossResult(SplatNetModel):
    has_defeat_boss: bool
    boss: IdRef


class CoopScale(SplatNetModel):
    gold: int
    silver: int
    bronze: int


class CoopHistoryDetail(SplatNetModel):
    id: str
    rule: str
    coop_stage: IdRef
    danger_rate: float
    result_wave: int
    boss_result: CoopBossResult | None = None
    my_result: CoopPlayerResult
    member_results: list[CoopPlayerResult] = Field(default_factory=list)
    enemy_results: list[CoopEnemyResult] = Field(default_factory=list)
    wave_results: list[CoopWaveResult] = Field(default_factory=list)
    scale: CoopScale | None = None
    smell_meter: int | None = None
    after_grade: IdRef | None = None
    after_grade_point: int | None = None
    job_point: int | None = None
    job_score: int | None = None
    job_rate: float | None = None
    job_bonus: int | None = None
    played_time: datetime


class GradeBefore(SplatNetModel):
    grade: IdRef
    grade_point: int


class CoopGroupInfo(SplatNetModel):
    mode: str | None = None


class CoopSession(SplatNetModel):
    type: Literal["CoopInfo"] = "CoopInfo"
    detail: CoopHistoryDetail
    grade_before: GradeBefore | None = None
    group_info: CoopGroupInfo | None = None

    @property
    def source_id(self) -> str:
        return self.detail.id


Session = Annotated[VersusSession | CoopSession, Field(discriminator="type")]

_session_adapter: TypeAdapter[Session] = TypeAdapter(Session)


def parse_session(obj: Any) -> VersusSession | CoopSession:
    """Validate a raw session mapping (as stored by the history fetcher)."""
    return _session_adapter.validate_python(obj)


def parse_session_json(raw: str | bytes) -> VersusSession | CoopSession:
    return _session_adapter.validate_json(raw)
