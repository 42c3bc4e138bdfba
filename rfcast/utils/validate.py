"""
Pydantic schemas to validate survey and history documents.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from rfcast.analysis.history import ApHistory, ConnectionEvent, NetworkTrend, SignalObservation
from rfcast.analysis.types import AreaBounds, SurveyCoord, SurveySample


class SurveyPoint(BaseModel):
    """
    One surveyed location and the RSSI of every AP seen there.

    `x` and `y` are normalized to the floor plan; omit both for an unlocated sample.
    """
    id: str
    x: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    y: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    floor: int = 0
    rssi: dict[str, int]
    ts: Optional[int] = None

    @field_validator("rssi")
    @classmethod
    def _rssi_in_range(cls, v: dict[str, int]) -> dict[str, int]:
        if not v:
            raise ValueError("at least one visible BSSID is required")
        for bssid, dbm in v.items():
            if not -120 <= dbm <= 0:
                raise ValueError(f"RSSI for {bssid} must be in [-120, 0] dBm, got {dbm}")
        return v

    @model_validator(mode="after")
    def _both_or_neither(self) -> "SurveyPoint":
        if (self.x is None) != (self.y is None):
            raise ValueError("x and y must be given together")
        return self

    def to_sample(self) -> SurveySample:
        location = None
        if self.x is not None:
            location = SurveyCoord(self.x, self.y, floor_level=self.floor)
        return SurveySample(self.id, self.rssi, location, self.ts)


class BoundsModel(BaseModel):
    """
    Area covered by a heatmap.
    """
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @model_validator(mode="after")
    def _non_degenerate(self) -> "BoundsModel":
        if self.max_x <= self.min_x or self.max_y <= self.min_y:
            raise ValueError("bounds must have max_x > min_x and max_y > min_y")
        return self

    def to_bounds(self) -> AreaBounds:
        return AreaBounds(self.min_x, self.min_y, self.max_x, self.max_y)


class SurveyDocument(BaseModel):
    """
    Input for heatmap, coverage and dead-zone commands.
    """
    bounds: BoundsModel
    samples: list[SurveyPoint] = Field(min_length=1)

    def to_samples(self) -> list[SurveySample]:
        return [p.to_sample() for p in self.samples]


class ObservationRecord(BaseModel):
    """
    Single RSSI reading.
    """
    ts: int = Field(gt=0)
    rssi: int = Field(ge=-120, le=0)


class ConnectionRecord(BaseModel):
    """
    Single connection or disconnection.
    """
    ts: int = Field(gt=0)
    connected: bool
    duration: Optional[int] = Field(default=None, ge=0)


class ApHistoryDocument(BaseModel):
    """
    Time series for one AP; input for the per-AP forecast commands.
    """
    bssid: str = Field(min_length=1)
    ssid: str = Field(min_length=1)
    observations: list[ObservationRecord] = Field(min_length=1)
    connections: list[ConnectionRecord] = Field(default_factory=list)

    def to_history(self) -> ApHistory:
        return ApHistory(
            bssid=self.bssid,
            ssid=self.ssid,
            observations=tuple(
                SignalObservation(self.bssid, o.ts, o.rssi) for o in self.observations
            ),
            connection_events=tuple(
                ConnectionEvent(self.bssid, c.ts, c.connected, c.duration)
                for c in self.connections
            ),
        )


class NetworkDocument(BaseModel):
    """
    Histories of every AP of one SSID; input for network-level forecasts.
    """
    ssid: str = Field(min_length=1)
    aps: list[ApHistoryDocument] = Field(min_length=1)

    def to_trend(self) -> NetworkTrend:
        return NetworkTrend(self.ssid, tuple(ap.to_history() for ap in self.aps))
