from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, IPvAnyAddress, field_validator, model_validator

# Sentinels for intervals left open at the edges of the observation window.
BEGINNING_OF_TIME = datetime.min
END_OF_TIME = datetime.max


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# ── Input rows ────────────────────────────────────────────────────────────────


class TrapLogRow(BaseModel):
    """One data row of the exported trap log spreadsheet."""

    model_config = {"frozen": True}

    row_number: int
    trap_time: datetime
    ip_address: IPvAnyAddress  # the device that sent the trap
    host_name: str
    community_string: str
    trap_type: str
    trap_details: str
    member: str


# ── Events and intervals ──────────────────────────────────────────────────────


class TrapEvent(BaseModel):
    """A single up/down observation for one host."""

    model_config = {"frozen": True}

    host: str
    is_up: bool
    timestamp: datetime
    duration_hint: str | None = None  # how long the host was in the opposite state
    imputed: bool = False
    row_number: int | None = None

    @field_validator("timestamp")
    @classmethod
    def _naive_timestamp(cls, value: datetime) -> datetime:
        return _to_naive_utc(value)

    @property
    def state(self) -> str:
        return "up" if self.is_up else "down"


class DowntimeInterval(BaseModel):
    """Half-open range [start, end) during which one host was down."""

    model_config = {"frozen": True}

    host: str
    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self) -> "DowntimeInterval":
        if not self.start < self.end:
            raise ValueError(f"Downtime interval must end after it starts ({self.start} >= {self.end})")
        return self

    @property
    def open_start(self) -> bool:
        return self.start == BEGINNING_OF_TIME

    @property
    def open_end(self) -> bool:
        return self.end == END_OF_TIME


class OutageWindow(BaseModel):
    """Half-open range [start, end) during which every host was down."""

    model_config = {"frozen": True}

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self) -> "OutageWindow":
        if not self.start < self.end:
            raise ValueError(f"Outage window must end after it starts ({self.start} >= {self.end})")
        return self

    @property
    def open_start(self) -> bool:
        return self.start == BEGINNING_OF_TIME

    @property
    def open_end(self) -> bool:
        return self.end == END_OF_TIME

    @property
    def duration(self) -> timedelta | None:
        """Length of the window, or None when an edge was never observed."""
        if self.open_start or self.open_end:
            return None
        return self.end - self.start


# ── Report ────────────────────────────────────────────────────────────────────


class HostSummary(BaseModel):
    host: str
    events: int
    imputed: int = 0
    downtime_intervals: int = 0


class HostFailure(BaseModel):
    host: str
    code: str
    message: str


class OutageReport(BaseModel):
    windows: list[OutageWindow] = []
    hosts: list[HostSummary] = []
    always_up_hosts: list[str] = []  # hosts never observed down
    unmonitored_hosts: list[str] = []  # declared hosts with no events at all
    failures: list[HostFailure] = []

    @property
    def complete(self) -> bool:
        return not self.failures
