from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

YesNo = Literal["yes", "no"]
TeamRole = Literal["attacker", "defender"]


class StatInkModel(BaseModel):
    """
    stat.ink post bodies.

    Mappers validate a complete payload mapping into these models; only the keys
    the mapper assigned are sent (see `to_wire`).
    """

    model_config = ConfigDict(extra="forbid")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


# -----------------------------
# Catalog entries (GET responses)
# -----------------------------


class CatalogEntry(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    key: str
    name: dict[str, str] = Field(default_factory=dict)
    aliases: list[str] = Field(default_factory=list)


# -----------------------------
# Battle
# -----------------------------


class StatInkGear(StatInkModel):
    primary_ability: str
    secondary_abilities: list[str | None]


class StatInkGears(StatInkModel):
    headgear: StatInkGear
    clothing: StatInkGear
    shoes: StatInkGear


class StatInkPlayer(StatInkModel):
    me: YesNo
    rank_in_team: int
    name: str
    number: str | None = None
    splashtag_title: str | None = None
    weapon: str
    inked: int
    gears: StatInkGears
    crown: YesNo
    disconnected: YesNo
    kill_or_assist: int | None = None
    assist: int | None = None
    kill: int | None = None
    death: int | None = None
    signal: int | None = None
    special: int | None = None


class BattlePostBody(StatInkModel):
    uuid: str
    lobby: str
    rule: str
    stage: str
    result: str
    weapon: str
    inked: int
    rank_in_team: int
    medals: list[str]

    kill_or_assist: int | None = None
    assist: int | None = None
    kill: int | None = None
    death: int | None = None
    signal: int | None = None
    special: int | None = None

    our_team_players: list[StatInkPlayer]
    their_team_players: list[StatInkPlayer]
    third_team_players: list[StatInkPlayer] | None = None

    our_team_color: str | None = None
    their_team_color: str | None = None
    third_team_color: str | None = None

    our_team_percent: float | None = None
    their_team_percent: float | None = None
    third_team_percent: float | None = None
    our_team_inked: int | None = None
    their_team_inked: int | None = None
    third_team_inked: int | None = None
    our_team_theme: str | None = None
    their_team_theme: str | None = None
    third_team_theme: str | None = None
    our_team_role: TeamRole | None = None
    their_team_role: TeamRole | None = None
    third_team_role: TeamRole | None = None
    our_team_count: int | None = None
    their_team_count: int | None = None

    knockout: YesNo | None = None

    fest_dragon: str | None = None
    clout_change: int | None = None
    fest_power: float | None = None

    rank_before: str | None = None
    rank_before_s_plus: int | None = None
    rank_before_exp: int | None = None
    rank_after: str | None = None
    rank_after_s_plus: int | None = None
    rank_after_exp: int | None = None
    rank_exp_change: int | None = None
    rank_up_battle: YesNo | None = None
    challenge_win: int | None = None
    challenge_lose: int | None = None

    x_power_before: float | None = None
    x_power_after: float | None = None

    agent: str
    agent_version: str
    agent_variables: dict[str, str] = Field(default_factory=dict)
    automated: YesNo
    start_at: int
    end_at: int


# -----------------------------
# Salmon Run
# -----------------------------


class StatInkCoopWave(StatInkModel):
    tide: str | None = None
    event: str | None = None
    golden_quota: int | None = None
    golden_appearances: int
    golden_delivered: int | None = None
    special_uses: dict[str, int]
    danger_rate: float | None = None


class StatInkCoopPlayer(StatInkModel):
    me: YesNo
    name: str
    number: str | None = None
    splashtag_title: str | None = None
    uniform: str
    special: str | None = None
    weapons: list[str]
    golden_eggs: int
    golden_assist: int
    power_eggs: int
    rescue: int
    rescued: int
    defeat_boss: int
    disconnected: YesNo


class StatInkCoopBoss(StatInkModel):
    appearances: int
    defeated: int
    defeated_by_me: int


class CoopPostBody(StatInkModel):
    uuid: str
    private: YesNo
    big_run: YesNo
    eggstra_work: YesNo
    stage: str
    danger_rate: float | None
    clear_waves: int
    fail_reason: str | None
    king_smell: int | None = None
    king_salmonid: str | None = None
    clear_extra: YesNo
    title_before: str | None = None
    title_exp_before: int | None = None
    title_after: str | None = None
    title_exp_after: int | None = None
    golden_eggs: int
    power_eggs: int
    gold_scale: int | None = None
    silver_scale: int | None = None
    bronze_scale: int | None = None
    job_point: int | None = None
    job_score: int | None = None
    job_rate: float | None = None
    job_bonus: int | None = None
    waves: list[StatInkCoopWave]
    players: list[StatInkCoopPlayer]
    bosses: dict[str, StatInkCoopBoss]

    agent: str
    agent_version: str
    agent_variables: dict[str, str] = Field(default_factory=dict)
    automated: YesNo
    start_at: int


class StatInkPostResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    url: str | None = None
    error: Any = None
