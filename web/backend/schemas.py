from typing import Any, Optional

from pydantic import BaseModel, Field


class StyleResponse(BaseModel):
    id: str
    name: str
    mix_url: Optional[str] = None
    duration: int = 0
    is_selectable: bool  # False for "coming soon" styles without a mix


class GroupResponse(BaseModel):
    id: str
    name: str
    color: Optional[str] = None


class TerminalResponse(BaseModel):
    id: str
    name: str
    city: Optional[str] = None
    group_id: Optional[str] = None
    is_active: bool
    current_style_id: Optional[str] = None
    volume: int
    is_playing: bool
    is_auto_mode: bool
    last_played_at: Optional[str] = None
    style: Optional[StyleResponse] = None


class TerminalSettingsRequest(BaseModel):
    """Settings a terminal may change about itself."""

    volume: Optional[int] = Field(default=None, ge=0, le=100)
    is_auto_mode: Optional[bool] = None
    is_playing: Optional[bool] = None


class CurrentProgramResponse(BaseModel):
    at: str  # "HH:MM" the schedule was resolved for
    style: Optional[StyleResponse] = None


class SavePositionRequest(BaseModel):
    position: int = Field(ge=0)
    is_playing: bool


class SavePositionResponse(BaseModel):
    success: bool
    style_id: str
    last_position: int
    session_total: Optional[int] = None


class ChangeStyleRequest(BaseModel):
    style_id: str


class ChangeStyleResponse(BaseModel):
    terminal: TerminalResponse
    style: StyleResponse
    resume_position: int


class FavoriteToggleRequest(BaseModel):
    style_id: str


class FavoriteToggleResponse(BaseModel):
    is_favorite: bool


class PositionResponse(BaseModel):
    style_id: Optional[str] = None
    position: int


class ActivityRequest(BaseModel):
    action: str
    details: Optional[dict[str, Any]] = None


class ActivityEntryResponse(BaseModel):
    id: int
    terminal_id: str
    action: str
    details: Optional[dict[str, Any]] = None
    created_at: str


class ActivityListResponse(BaseModel):
    entries: list[ActivityEntryResponse]


class ScheduleEntryResponse(BaseModel):
    id: int
    start_time: str
    end_time: str
    style_id: str
    terminal_id: Optional[str] = None  # None = applies to every terminal


class CreateScheduleRequest(BaseModel):
    start_time: str
    end_time: str
    style_id: str
    terminal_id: Optional[str] = None


class UpdateScheduleRequest(BaseModel):
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    style_id: Optional[str] = None


class StyleRefResponse(BaseModel):
    id: str
    name: str


class LiveTerminalResponse(BaseModel):
    id: str
    name: str
    city: Optional[str] = None
    volume: int
    is_active: bool
    is_playing: bool
    is_auto_mode: bool
    last_played_at: Optional[str] = None
    group: Optional[GroupResponse] = None
    style: Optional[StyleRefResponse] = None


class LiveStatsResponse(BaseModel):
    total: int
    active: int
    playing_now: int
    auto_mode_count: int
    listened_seconds_today: int


class LiveStoresResponse(BaseModel):
    playing: list[LiveTerminalResponse]
    paused: list[LiveTerminalResponse]  # active but not playing
    inactive: list[LiveTerminalResponse]


class StylePlaytimeResponse(BaseModel):
    id: str
    name: str
    duration: int = 0
    seconds: int  # listening seconds
    sessions: int


class FeaturedStyleResponse(BaseModel):
    style: StyleRefResponse
    terminal_count: int


class LiveStatusResponse(BaseModel):
    stats: LiveStatsResponse
    stores: LiveStoresResponse
    featured: Optional[FeaturedStyleResponse] = None
    popular_styles: list[StylePlaytimeResponse] = []


class StatsResponse(BaseModel):
    terminals: int
    styles: int
    styles_with_mix: int
    sessions: int
    listened_seconds_today: int


class AnalyticsKpisResponse(BaseModel):
    total_seconds: int
    total_sessions: int
    active_terminals: int
    total_terminals: int
    top_style: Optional[str] = None


class TerminalPlaytimeResponse(BaseModel):
    id: str
    name: str
    seconds: int
    sessions: int
    favorite_style: Optional[str] = None


class DailyPlaytimeResponse(BaseModel):
    day: str
    seconds: int


class AnalyticsResponse(BaseModel):
    kpis: AnalyticsKpisResponse
    style_distribution: list[StylePlaytimeResponse]
    terminal_stats: list[TerminalPlaytimeResponse]
    top_terminals: list[TerminalPlaytimeResponse]
    daily: list[DailyPlaytimeResponse]  # oldest day first
