import email.utils
from datetime import datetime, timezone
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Larger page sizes cause server-side errors, so use what the Bandcamp website uses.
PAGE_SIZE = 20

DAY_NAMES = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]


def parse_rfc2822(value: str) -> datetime:
    """Parse an RFC 2822 date string into an aware UTC datetime.

    The zone is required, and a leading day of the week must match the date.

    Raises:
        ValueError: If the string is not a valid RFC 2822 date.
    """
    fields = email.utils.parsedate_tz(value) if isinstance(value, str) else None
    if fields is None:
        raise ValueError(f"Invalid RFC 2822 date: {value!r}")

    # parsedate_tz reports both '-0000' and a missing zone as None
    if fields[9] is None and not value.rstrip().endswith("-0000"):
        raise ValueError(f"RFC 2822 date has no zone: {value!r}")

    try:
        parsed = email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid RFC 2822 date: {value!r}") from e

    tokens = value.split()
    if tokens and (tokens[0].endswith(",") or tokens[0].lower() in DAY_NAMES):
        day = tokens[0].rstrip(",").lower()
        if day not in DAY_NAMES:
            raise ValueError(f"Invalid day of the week in RFC 2822 date: {value!r}")
        if DAY_NAMES.index(day) != parsed.weekday():
            raise ValueError(f"Day of the week does not match the date: {value!r}")

    # '-0000' means the local zone is unknown; the instant is UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class CatalogItem(BaseModel):
    """A single item in a collection or wishlist; usually an album, sometimes a track."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    added: datetime
    artist_name: str = Field(alias="band_name")
    item_id: int = Field(alias="album_id", ge=0)
    item_title: str = Field(alias="album_title")

    @field_validator("added", mode="before")
    @classmethod
    def _parse_added(cls, value: Any) -> datetime:
        if isinstance(value, datetime) and value.tzinfo is not None:
            return value.astimezone(timezone.utc)
        if not isinstance(value, str):
            raise ValueError("added must be an RFC 2822 date string")
        return parse_rfc2822(value)


class Page(BaseModel):
    """One page of results from the collection or wishlist API."""
    model_config = ConfigDict(populate_by_name=True)

    items: List[CatalogItem]
    continuation_token: str = Field(alias="last_token")
    more_available: bool


class QueryRequest(BaseModel):
    """The payload required to list one page of a collection or wishlist."""
    model_config = ConfigDict(frozen=True)

    fan_id: int = Field(ge=0)
    continuation_token: str

    def payload(self) -> Dict[str, Any]:
        """Build the JSON body sent to the API."""
        return {
            "fan_id": self.fan_id,
            "older_than_token": self.continuation_token,
            "count": PAGE_SIZE,
        }
