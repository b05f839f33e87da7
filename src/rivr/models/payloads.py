"""Pydantic schemas for payloads returned by the river data APIs."""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from rivr.errors import ParseError


class StationApiData(BaseModel):
    """
    Typed view of a ``/reaches/{id}`` response.

    Only the fields rivr reads are declared; everything else the API sends is
    kept as extra data so the full payload survives a trip through the cache.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: Optional[str] = None
    reach_id: Optional[str] = Field(default=None, alias="reachId")
    river_class: Optional[str] = Field(default=None, alias="class")
    difficulty: Optional[str] = None
    description: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    stream_order: Optional[str] = Field(default=None, alias="streamOrder")

    @field_validator(
        "name", "reach_id", "river_class", "difficulty", "stream_order",
        mode="before",
    )
    @classmethod
    def _scalar_to_str(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @property
    def api_name(self) -> Optional[str]:
        """The API name, trimmed; ``None`` when absent or blank."""
        if self.name is None:
            return None
        stripped = self.name.strip()
        return stripped or None

    def to_api_dict(self) -> Dict[str, Any]:
        """Dump back to the API's own key names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ForecastPayload(BaseModel):
    """Minimal envelope check for ``/reaches/{id}/streamflow`` responses."""

    model_config = ConfigDict(extra="allow")

    reach: Optional[Dict[str, Any]] = None


def parse_station_payload(raw: Any) -> StationApiData:
    """Validate a decoded station response, raising ``ParseError`` when it is unusable."""
    if not isinstance(raw, Mapping):
        raise ParseError(f"Expected a JSON object for station data, got {type(raw).__name__}")
    try:
        return StationApiData.model_validate(dict(raw))
    except ValidationError as exc:
        raise ParseError(
            f"Failed to parse station data: {exc.error_count()} invalid field(s)",
            original_error=exc,
        ) from exc


def parse_forecast_payload(raw: Any) -> Dict[str, Any]:
    """Validate a decoded forecast response and return it as a plain dict."""
    if not isinstance(raw, Mapping):
        raise ParseError(f"Expected a JSON object for forecast data, got {type(raw).__name__}")
    try:
        return ForecastPayload.model_validate(dict(raw)).model_dump(exclude_none=True)
    except ValidationError as exc:
        raise ParseError("Failed to parse forecast data", original_error=exc) from exc
