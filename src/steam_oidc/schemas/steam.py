"""Schemas for Steam Web API payloads."""

from pydantic import BaseModel, Field

from .oidc import STEAM_ID_PATTERN


class SteamProfile(BaseModel):
    """Public profile summary returned by ISteamUser/GetPlayerSummaries."""

    steamid: str = Field(..., pattern=STEAM_ID_PATTERN)
    personaname: str
    avatar: str
    avatarmedium: str
    avatarfull: str
    profileurl: str | None = None
    personastate: int | None = None


class SteamPlayers(BaseModel):
    players: list[SteamProfile]


class SteamApiResponse(BaseModel):
    response: SteamPlayers
