from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from beacon.utils.timezone import parse_iso8601_to_utc, DateFormatError


class ApiEvent(BaseModel):
    """Event record as returned by /api/events/upcoming"""
    id: str
    title: str
    description: str = ""
    start_time: datetime
    end_time: datetime
    location: str = ""
    location_url: str | None = None
    image: str | None = None
    thumbnail: str | None = None
    category: str = ""
    is_featured: bool = False
    recurring_type: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator('start_time', 'end_time', 'created_at', 'updated_at', mode='before')
    @classmethod
    def parse_timestamp(cls, v):
        """Normalize RFC3339 timestamps to aware UTC datetimes"""
        if v is None or isinstance(v, datetime):
            return v
        try:
            return parse_iso8601_to_utc(v)
        except DateFormatError as e:
            raise ValueError(str(e)) from e

    @field_validator('description', 'location', 'category', mode='before')
    @classmethod
    def null_to_empty(cls, v):
        return "" if v is None else v

    @field_validator('image', 'thumbnail', 'location_url')
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        """The API sends empty strings for missing URLs"""
        if v is None or not v.strip():
            return None
        return v.strip()

    @model_validator(mode='after')
    def validate_time_range(self):
        """An event cannot end before it starts"""
        if self.end_time < self.start_time:
            raise ValueError(
                f"Event {self.id}: end_time ({self.end_time.isoformat()}) is before start_time ({self.start_time.isoformat()})"
            )
        return self


class ApiEnvelope(BaseModel):
    """Response envelope wrapping every API payload"""
    success: bool
    data: list[ApiEvent] = Field(default_factory=list)


class EventResponse(BaseModel):
    """Event as exposed by the display surface"""
    id: str
    title: str
    description: str
    start_time: str = Field(..., description="ISO8601 UTC start time")
    end_time: str = Field(..., description="ISO8601 UTC end time")
    date: str = Field(..., description="Human-formatted date")
    time_range: str = Field(..., description="Human-formatted time range, e.g. '7:00 PM - 9:00 PM'")
    location: str
    location_url: str | None = None
    image_url: str | None = None
    category: str
    is_featured: bool = False


class SlideResponse(BaseModel):
    """What the display should render right now"""
    event: EventResponse | None = Field(None, description="Current event, null until the first refresh lands")
    index: int
    event_count: int
    spinner_phase: int = Field(..., description="Loading animation frame index (cyclic)")
    spinner_frame: str
    image_status: str = Field(..., description="'loaded', 'pending' or 'none'")
    image_path: str | None = Field(None, description="Path serving the image bytes once loaded")


class HealthResponse(BaseModel):
    """Health check payload"""
    status: str
    scheduler_running: bool
    event_count: int
    fetch_in_flight: bool
    last_refresh: str | None
    next_tick: str | None
