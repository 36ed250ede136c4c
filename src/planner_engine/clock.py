"""
Instant <-> wall-clock conversion for arbitrary IANA zones.

The only primitive used is "render an instant in a zone and read back its
calendar fields and UTC offset" (``datetime.astimezone`` over the zoneinfo
database).  Wall-clock -> instant is solved on top of that primitive by a
bounded fixed-point iteration, then checked against the neighbouring offsets
so that repeated and skipped local times are resolved by an explicit policy.
"""

import logging
import re
from dataclasses import dataclass
from dataclasses import field
from datetime import date
from datetime import datetime
from datetime import timedelta
from datetime import timezone
from enum import Enum
from zoneinfo import ZoneInfo
from zoneinfo import ZoneInfoNotFoundError

from babel import Locale
from babel import UnknownLocaleError
from babel.dates import format_date
from babel.dates import format_time
from babel.dates import get_datetime_format
from dateutil.parser import isoparse

from planner_engine.models import DAY_MS
from planner_engine.models import AmbiguousTimeError
from planner_engine.models import InvalidLocaleError
from planner_engine.models import InvalidTimeZoneError
from planner_engine.models import NonexistentTimeError
from planner_engine.models import WallClockParseError

_logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_NAIVE_EPOCH = datetime(1970, 1, 1)
_ONE_MS = timedelta(milliseconds=1)

# Trailing "[Region/City]" on zoned strings, e.g. 2024-03-10T01:30:00-05:00[America/New_York]
_ZONE_SUFFIX_RE = re.compile(r"\[([^\[\]]+)\]$")

MAX_ITERATIONS = 8
STYLES = ("full", "long", "medium", "short")


def _pad(value: int, size: int = 2) -> str:
    return str(value).zfill(size)


def format_offset(minutes: int) -> str:
    """Render an offset in minutes as ``±HH:MM``."""
    sign = "-" if minutes < 0 else "+"
    hours, mins = divmod(abs(minutes), 60)
    return f"{sign}{_pad(hours)}:{_pad(mins)}"


def to_epoch_ms(value: datetime) -> int:
    """Epoch milliseconds of an aware datetime."""
    if value.tzinfo is None:
        raise WallClockParseError(f"Datetime {value!r} has no UTC offset")
    return (value - _EPOCH) // _ONE_MS


def instant_to_iso(instant: int) -> str:
    """Serialize an instant as ISO-8601 UTC with millisecond precision."""
    utc = _EPOCH + timedelta(milliseconds=instant)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_instant(text: str) -> int:
    """Parse an ISO-8601 string carrying ``Z`` or a numeric offset."""
    try:
        parsed = isoparse(text.strip())
    except (ValueError, OverflowError) as e:
        raise WallClockParseError(f"Malformed instant {text!r}: {e}") from None
    if parsed.tzinfo is None:
        raise WallClockParseError(f"Instant {text!r} is missing a UTC offset")
    return to_epoch_ms(parsed)


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, order=True)
class PlainWallClock:
    """Clock-face fields with no zone attached."""

    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0
    second: int = 0
    millisecond: int = 0

    def __post_init__(self):
        try:
            self.to_datetime()
        except (ValueError, TypeError, OverflowError) as e:
            raise WallClockParseError(f"Invalid wall-clock fields: {e}") from None

    @classmethod
    def parse(cls, text: str) -> "PlainWallClock":
        """Parse ``YYYY-MM-DD[THH:MM[:SS[.sss]]]`` (no offset allowed)."""
        try:
            parsed = isoparse(text.strip())
        except (ValueError, OverflowError) as e:
            raise WallClockParseError(f"Malformed wall-clock time {text!r}: {e}") from None
        if parsed.tzinfo is not None:
            raise WallClockParseError(f"Wall-clock time {text!r} must not carry an offset")
        return cls.from_datetime(parsed)

    @classmethod
    def from_datetime(cls, value: datetime) -> "PlainWallClock":
        return cls(
            value.year,
            value.month,
            value.day,
            value.hour,
            value.minute,
            value.second,
            value.microsecond // 1000,
        )

    @classmethod
    def from_date(cls, value: date) -> "PlainWallClock":
        return cls(value.year, value.month, value.day)

    @classmethod
    def from_utc_millis(cls, millis: int) -> "PlainWallClock":
        return cls.from_datetime(_NAIVE_EPOCH + timedelta(milliseconds=millis))

    def to_datetime(self) -> datetime:
        return datetime(
            self.year,
            self.month,
            self.day,
            self.hour,
            self.minute,
            self.second,
            self.millisecond * 1000,
        )

    def to_utc_millis(self) -> int:
        """The fields read as if they were UTC; used to compare wall clocks."""
        return (self.to_datetime() - _NAIVE_EPOCH) // _ONE_MS

    def date(self) -> date:
        return date(self.year, self.month, self.day)

    def weekday(self) -> int:
        """Monday is 0."""
        return self.date().weekday()

    def plus_days(self, days: int) -> "PlainWallClock":
        return PlainWallClock.from_datetime(self.to_datetime() + timedelta(days=days))

    def at(self, hour: int, minute: int = 0, second: int = 0, millisecond: int = 0):
        return PlainWallClock(self.year, self.month, self.day, hour, minute, second, millisecond)

    def __str__(self) -> str:
        return (
            f"{_pad(self.year, 4)}-{_pad(self.month)}-{_pad(self.day)}"
            f"T{_pad(self.hour)}:{_pad(self.minute)}:{_pad(self.second)}"
            f".{_pad(self.millisecond, 3)}"
        )


@dataclass(frozen=True)
class WallClockReading:
    """What an instant looks like in a zone."""

    wall: PlainWallClock
    offset_minutes: int


class Disambiguation(str, Enum):
    """Policy for wall-clock times that occur twice or not at all."""

    COMPATIBLE = "compatible"  # earlier when repeated, shifted forward when skipped
    EARLIER = "earlier"
    LATER = "later"
    REJECT = "reject"


@dataclass(frozen=True)
class ZonedInstant:
    """An instant bound to a zone.

    Only ``(epoch_ms, zone_id)`` is stored; every wall-clock field is derived
    by rendering the instant through the owning clock.
    """

    epoch_ms: int
    zone_id: str
    clock: "ZonedClock" = field(compare=False, repr=False)

    @property
    def reading(self) -> WallClockReading:
        return self.clock.instant_to_wall_clock(self.epoch_ms, self.zone_id)

    @property
    def wall(self) -> PlainWallClock:
        return self.reading.wall

    @property
    def offset_minutes(self) -> int:
        return self.reading.offset_minutes

    @property
    def year(self) -> int:
        return self.wall.year

    @property
    def month(self) -> int:
        return self.wall.month

    @property
    def day(self) -> int:
        return self.wall.day

    @property
    def hour(self) -> int:
        return self.wall.hour

    @property
    def minute(self) -> int:
        return self.wall.minute

    @property
    def second(self) -> int:
        return self.wall.second

    @property
    def millisecond(self) -> int:
        return self.wall.millisecond

    def to_instant(self) -> int:
        return self.epoch_ms

    def to_datetime(self) -> datetime:
        return self.clock.render(self.epoch_ms, self.zone_id)

    def with_zone(self, zone: str, keep_local_time: bool = False) -> "ZonedInstant":
        return self.clock.with_zone(self, zone, keep_local_time=keep_local_time)

    def has_same(self, other: "ZonedInstant", unit: str) -> bool:
        return self.clock.has_same(self, other, unit)

    def format(self, locale: str | None = None, date_style="medium", time_style="short") -> str:
        return self.clock.format(
            self, locale=locale, date_style=date_style, time_style=time_style
        )

    def __str__(self) -> str:
        reading = self.reading
        return f"{reading.wall}{format_offset(reading.offset_minutes)}[{self.zone_id}]"


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class ZonedClock:
    """Converts between instants and zone-local wall-clock time.

    Zone and locale lookups are cached on the instance, so independent
    clocks never share state.
    """

    def __init__(
        self,
        default_zone: str = "UTC",
        locale: str = "en-US",
        max_iterations: int = MAX_ITERATIONS,
    ):
        self.default_zone = default_zone
        self.locale = locale
        self.max_iterations = max_iterations
        self._zones: dict[str, ZoneInfo] = {}
        self._locales: dict[str, Locale] = {}

    # -- lookups ------------------------------------------------------------

    def zone(self, zone_id: str) -> ZoneInfo:
        """Resolve an IANA zone id; unknown ids raise InvalidTimeZoneError."""
        tz = self._zones.get(zone_id)
        if tz is None:
            try:
                tz = ZoneInfo.no_cache(zone_id)
            except (ZoneInfoNotFoundError, ValueError, TypeError, OSError) as e:
                raise InvalidTimeZoneError(f"Unknown time zone: {zone_id!r}") from e
            self._zones[zone_id] = tz
        return tz

    def _locale(self, identifier: str) -> Locale:
        loc = self._locales.get(identifier)
        if loc is None:
            try:
                loc = Locale.parse(identifier.replace("-", "_"))
            except (UnknownLocaleError, ValueError, TypeError) as e:
                raise InvalidLocaleError(f"Unknown locale: {identifier!r}") from e
            self._locales[identifier] = loc
        return loc

    # -- instant -> wall clock ---------------------------------------------

    def render(self, instant: int, zone: str) -> datetime:
        """Aware datetime for ``instant`` in ``zone``."""
        return (_EPOCH + timedelta(milliseconds=instant)).astimezone(self.zone(zone))

    def _fields_millis(self, instant: int, zone: str) -> int:
        local = self.render(instant, zone)
        return (local.replace(tzinfo=None) - _NAIVE_EPOCH) // _ONE_MS

    def _offset_millis(self, instant: int, zone: str) -> int:
        return self.render(instant, zone).utcoffset() // _ONE_MS

    def instant_to_wall_clock(self, instant: int, zone: str) -> WallClockReading:
        local = self.render(instant, zone)
        offset = int(local.utcoffset().total_seconds() / 60)
        return WallClockReading(PlainWallClock.from_datetime(local), offset)

    # -- wall clock -> instant ---------------------------------------------

    def wall_clock_to_instant(
        self,
        fields: PlainWallClock,
        zone: str,
        disambiguation: Disambiguation | str = Disambiguation.COMPATIBLE,
    ) -> int:
        """Find the instant whose rendering in ``zone`` equals ``fields``."""
        policy = Disambiguation(disambiguation)
        desired = fields.to_utc_millis()

        guess = desired
        converged = False
        for _ in range(self.max_iterations):
            delta = self._fields_millis(guess, zone) - desired
            if delta == 0:
                converged = True
                break
            guess -= delta

        candidates = self._candidates(desired, guess, zone)
        if len(candidates) == 1:
            return candidates[0]

        if candidates:
            if policy is Disambiguation.REJECT:
                raise AmbiguousTimeError(f"{fields} occurs twice in {zone}")
            chosen = candidates[-1] if policy is Disambiguation.LATER else candidates[0]
            _logger.debug("%s is repeated in %s; %s policy picks %d", fields, zone, policy, chosen)
            return chosen

        before = self._offset_millis(guess - DAY_MS, zone)
        after = self._offset_millis(guess + DAY_MS, zone)
        if before == after:
            _logger.debug(
                "%s in %s unresolved after %d iterations (converged=%s); using last guess",
                fields,
                zone,
                self.max_iterations,
                converged,
            )
            return guess
        if policy is Disambiguation.REJECT:
            raise NonexistentTimeError(f"{fields} does not exist in {zone}")
        if policy is Disambiguation.EARLIER:
            return desired - after
        return desired - before

    def _candidates(self, desired: int, guess: int, zone: str) -> list[int]:
        """Instants near ``guess`` that render exactly to ``desired``."""
        offsets = {self._offset_millis(guess + shift, zone) for shift in (-DAY_MS, 0, DAY_MS)}
        found = {
            desired - offset
            for offset in offsets
            if self._fields_millis(desired - offset, zone) == desired
        }
        return sorted(found)

    # -- zoned values --------------------------------------------------------

    def zoned(self, instant: int, zone: str | None = None) -> ZonedInstant:
        zone = zone or self.default_zone
        self.zone(zone)
        return ZonedInstant(instant, zone, self)

    def from_wall_clock(
        self,
        fields: PlainWallClock,
        zone: str | None = None,
        disambiguation: Disambiguation | str = Disambiguation.COMPATIBLE,
    ) -> ZonedInstant:
        zone = zone or self.default_zone
        return ZonedInstant(self.wall_clock_to_instant(fields, zone, disambiguation), zone, self)

    def now(self, zone: str | None = None) -> ZonedInstant:
        return self.zoned(to_epoch_ms(datetime.now(timezone.utc)), zone)

    def parse(
        self,
        text: str,
        zone: str | None = None,
        disambiguation: Disambiguation | str = Disambiguation.COMPATIBLE,
    ) -> ZonedInstant:
        """Parse ISO-8601 text into a zoned value.

        A trailing ``[Zone]`` overrides ``zone``.  Text with ``Z`` or a numeric
        offset is an exact instant; bare wall-clock text is resolved in the zone.
        """
        zone = zone or self.default_zone
        body = text.strip()
        match = _ZONE_SUFFIX_RE.search(body)
        if match:
            zone = match.group(1)
            body = body[: match.start()]
        try:
            parsed = isoparse(body)
        except (ValueError, OverflowError) as e:
            raise WallClockParseError(f"Malformed date-time {text!r}: {e}") from None
        if parsed.tzinfo is not None:
            return self.zoned(to_epoch_ms(parsed), zone)
        return self.from_wall_clock(PlainWallClock.from_datetime(parsed), zone, disambiguation)

    def with_zone(
        self, value: ZonedInstant, zone: str, keep_local_time: bool = False
    ) -> ZonedInstant:
        if keep_local_time and zone != value.zone_id:
            return self.from_wall_clock(value.wall, zone)
        return self.zoned(value.epoch_ms, zone)

    def coerce(self, value, zone: str | None = None) -> ZonedInstant:
        """Accept a ZonedInstant, epoch ms, PlainWallClock or ISO string."""
        if isinstance(value, ZonedInstant):
            if zone and zone != value.zone_id:
                return self.zoned(value.epoch_ms, zone)
            return value
        if isinstance(value, PlainWallClock):
            return self.from_wall_clock(value, zone)
        if isinstance(value, str):
            return self.parse(value, zone)
        if isinstance(value, int) and not isinstance(value, bool):
            return self.zoned(value, zone)
        raise TypeError(f"Unsupported time value: {value!r}")

    # -- comparison ----------------------------------------------------------

    def has_same(self, a: ZonedInstant, b: ZonedInstant, unit: str, zone: str | None = None):
        """Compare calendar fields of two values rendered in one zone."""
        zone = zone or a.zone_id
        left = self.instant_to_wall_clock(a.epoch_ms, zone).wall
        right = self.instant_to_wall_clock(b.epoch_ms, zone).wall
        if unit == "day":
            return (left.year, left.month, left.day) == (right.year, right.month, right.day)
        if unit == "month":
            return (left.year, left.month) == (right.year, right.month)
        if unit == "year":
            return left.year == right.year
        raise ValueError(f"Unsupported comparison unit: {unit!r}")

    # -- locale formatting ---------------------------------------------------

    def format(
        self,
        value,
        locale: str | None = None,
        zone: str | None = None,
        date_style: str | None = "medium",
        time_style: str | None = "short",
    ) -> str:
        """Render a value with CLDR date/time styles for a locale."""
        if date_style is None and time_style is None:
            raise ValueError("At least one of date_style and time_style is required")
        for style in (date_style, time_style):
            if style is not None and style not in STYLES:
                raise ValueError(f"Unsupported style {style!r}; expected one of {STYLES}")

        zoned = self.coerce(value, zone)
        loc = self._locale(locale or self.locale)
        local = zoned.to_datetime()

        if time_style is None:
            return format_date(local, date_style, locale=loc)
        time_text = format_time(local, time_style, tzinfo=local.tzinfo, locale=loc)
        if date_style is None:
            return time_text
        date_text = format_date(local, date_style, locale=loc)
        pattern = get_datetime_format(date_style, locale=loc)
        return pattern.replace("'", "").replace("{0}", time_text).replace("{1}", date_text)

    def format_range(self, start, end, zone: str | None = None, locale: str | None = None) -> str:
        """``"9:00 AM – 10:30 AM"`` style time range."""
        first = self.format(start, locale=locale, zone=zone, date_style=None)
        second = self.format(end, locale=locale, zone=zone, date_style=None)
        return f"{first} – {second}"
