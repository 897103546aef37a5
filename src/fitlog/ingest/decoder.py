"""
FIT decoder: turns the raw bytes of an uploaded .fit file into session
metadata plus a chronological tuple of DecodedRecord samples.

Decoding happens in two passes:

  1. Framing checks done here with struct, before any message is parsed:
     header size, ".FIT" signature, header CRC, declared data size and the
     trailing file CRC. These decide between InvalidFormat, Truncated and
     ChecksumMismatch deterministically.
  2. Message walking with fitparse. fitparse applies the FIT profile's
     scale/offset to every field (speed /1000, distance /100, altitude
     /5 - 500, elapsed time /1000) so values arrive in m/s, m and s.

Field mapping from FIT to our schema:
  FIT message.field            → our field
  record.timestamp             → DecodedRecord.timestamp (s since first sample)
  record.heart_rate            → DecodedRecord.heart_rate (bpm, int)
  record.enhanced_speed        → DecodedRecord.speed_ms (falls back to speed)
  record.enhanced_altitude     → DecodedRecord.elevation_meters (falls back to altitude)
  record.position_lat/long     → DecodedRecord.lat / lon (degrees, from semicircles)
  record.distance              → DecodedRecord.distance_meters
  session.sport                → SessionMetadata.sport (falls back to sport.sport)
  session.total_elapsed_time   → SessionMetadata.elapsed_seconds
  session.total_distance       → SessionMetadata.distance_meters
  session.total_calories       → SessionMetadata.calories
  session.start_time           → SessionMetadata.start_time
"""
import io
import logging
import struct
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import fitparse
from fitparse.utils import FitCRCError, FitEOFError, FitHeaderError, FitParseError

from fitlog.ingest.errors import ChecksumMismatch, InvalidFormat, Truncated
from fitlog.ingest.types import DecodedRecord, SessionMetadata

logger = logging.getLogger(__name__)

_FIT_SIGNATURE = b".FIT"
_MIN_HEADER_SIZE = 12
_HEADER_STRUCT = struct.Struct("<BBHI4s")  # size, protocol, profile, data_size, ".FIT"
_CRC_SIZE = 2

# Garmin stores lat/lon as 32-bit signed integers in "semicircles"
# Degrees = semicircles * (180 / 2^31)
_SEMICIRCLE_TO_DEGREES = 180.0 / (2**31)

# FIT date_time values count seconds from 1989-12-31 00:00 UTC
_FIT_EPOCH = datetime(1989, 12, 31)

_ACTIVITY_FILE_TYPES = ("activity", 4)

# FIT SDK CRC-16 nibble table
_CRC_TABLE = (
    0x0000, 0xCC01, 0xD801, 0x1400, 0xF001, 0x3C00, 0x2800, 0xE401,
    0xA001, 0x6C00, 0x7800, 0xB401, 0x5000, 0x9C01, 0x8801, 0x4400,
)


def fit_crc(data: bytes, crc: int = 0) -> int:
    """Compute the FIT CRC-16 of data, optionally continuing from crc."""
    for byte in data:
        tmp = _CRC_TABLE[crc & 0xF]
        crc = (crc >> 4) & 0x0FFF
        crc = crc ^ tmp ^ _CRC_TABLE[byte & 0xF]
        tmp = _CRC_TABLE[crc & 0xF]
        crc = (crc >> 4) & 0x0FFF
        crc = crc ^ tmp ^ _CRC_TABLE[(byte >> 4) & 0xF]
    return crc


def decode(raw: bytes) -> Tuple[SessionMetadata, Tuple[DecodedRecord, ...]]:
    """
    Decode a FIT activity file.

    Args:
        raw: the complete file contents

    Returns:
        (metadata, records) where records are ordered by increasing timestamp,
        ties kept in file order.

    Raises:
        InvalidFormat: not a FIT file, or a FIT file that is not an activity
        Truncated: the bytes end before the header's declared end of file
        ChecksumMismatch: header CRC or trailing file CRC does not match
    """
    raw = bytes(raw)
    end = _check_framing(raw)
    messages = _read_messages(raw[:end])

    sessions: List[Dict[str, Any]] = []
    sport_messages: List[Dict[str, Any]] = []
    samples: List[Dict[str, Any]] = []
    skipped: Counter = Counter()

    for message in messages:
        name = message.name
        if name == "record":
            samples.append(message.get_values())
        elif name == "session":
            sessions.append(message.get_values())
        elif name == "sport":
            sport_messages.append(message.get_values())
        elif name == "file_id":
            _check_file_type(message.get_values())
        else:
            skipped[name] += 1

    if skipped:
        logger.debug("Skipped FIT messages: %s", dict(skipped))

    metadata = _build_metadata(sessions, sport_messages)
    records = _build_records(samples)
    return metadata, records


# ─── Framing ───────────────────────────────────────────────────────────────────

def _check_framing(raw: bytes) -> int:
    """Validate header and CRCs. Returns the offset one past the file CRC."""
    if len(raw) < _MIN_HEADER_SIZE:
        if _is_header_prefix(raw):
            raise Truncated(f"only {len(raw)} bytes, header needs {_MIN_HEADER_SIZE}")
        raise InvalidFormat("missing .FIT header")

    header_size, _protocol, _profile, data_size, signature = _HEADER_STRUCT.unpack_from(raw, 0)
    if signature != _FIT_SIGNATURE:
        raise InvalidFormat(f"bad signature {signature!r}")
    if header_size < _MIN_HEADER_SIZE:
        raise InvalidFormat(f"header size {header_size} is too small")
    if len(raw) < header_size:
        raise Truncated(f"header declares {header_size} bytes, got {len(raw)}")

    if header_size >= 14:
        (header_crc,) = struct.unpack_from("<H", raw, 12)
        # A zero header CRC means "not computed"
        if header_crc != 0 and header_crc != fit_crc(raw[:12]):
            raise ChecksumMismatch("header CRC does not match")

    end = header_size + data_size + _CRC_SIZE
    if len(raw) < end:
        raise Truncated(f"header declares {end} bytes, got {len(raw)}")
    if len(raw) > end:
        logger.debug("Ignoring %d bytes after end of FIT data", len(raw) - end)

    (file_crc,) = struct.unpack_from("<H", raw, end - _CRC_SIZE)
    if file_crc != fit_crc(raw[:end - _CRC_SIZE]):
        raise ChecksumMismatch("file CRC does not match")
    return end


def _is_header_prefix(raw: bytes) -> bool:
    """True if raw could be the start of a FIT header that was cut short."""
    if not raw:
        return True
    if raw[0] < _MIN_HEADER_SIZE:
        return False
    return _FIT_SIGNATURE.startswith(raw[8:12])


def _read_messages(raw: bytes) -> list:
    try:
        fit = fitparse.FitFile(io.BytesIO(raw), check_crc=False)
        return list(fit.get_messages())
    except FitEOFError as exc:
        raise Truncated(str(exc)) from exc
    except FitCRCError as exc:
        raise ChecksumMismatch(str(exc)) from exc
    except FitHeaderError as exc:
        raise InvalidFormat(str(exc)) from exc
    except FitParseError as exc:
        raise InvalidFormat(str(exc)) from exc
    except (struct.error, KeyError, IndexError) as exc:
        # Framing was fine but a message body is malformed
        raise InvalidFormat(f"malformed message: {exc}") from exc


def _check_file_type(values: Dict[str, Any]) -> None:
    file_type = values.get("type")
    if file_type is not None and file_type not in _ACTIVITY_FILE_TYPES:
        raise InvalidFormat(f"file type is {file_type!r}, expected 'activity'")


# ─── Metadata ──────────────────────────────────────────────────────────────────

def _build_metadata(
    sessions: List[Dict[str, Any]],
    sport_messages: List[Dict[str, Any]],
) -> SessionMetadata:
    sports = [_sport_name(s.get("sport")) for s in sessions]
    if not sports:
        sports = [_sport_name(s.get("sport")) for s in sport_messages]
    sports = [s for s in sports if s is not None]

    if not sports:
        sport = "unknown"
    elif len(set(sports)) == 1:
        sport = sports[0]
    else:
        sport = "multisport"

    start_times = [s["start_time"] for s in sessions if isinstance(s.get("start_time"), datetime)]

    return SessionMetadata(
        sport=sport,
        elapsed_seconds=_sum_present(s.get("total_elapsed_time") for s in sessions),
        distance_meters=_sum_present(s.get("total_distance") for s in sessions),
        calories=_int_or_none(_sum_present(s.get("total_calories") for s in sessions)),
        start_time=_as_utc(min(start_times)) if start_times else None,
        session_count=len(sessions),
    )


def _sport_name(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip().lower()


def _sum_present(values) -> Optional[float]:
    present = [float(v) for v in values if isinstance(v, (int, float))]
    if not present:
        return None
    return sum(present)


def _int_or_none(value: Optional[float]) -> Optional[int]:
    return int(round(value)) if value is not None else None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ─── Records ───────────────────────────────────────────────────────────────────

def _build_records(samples: List[Dict[str, Any]]) -> Tuple[DecodedRecord, ...]:
    stamped = []
    for values in samples:
        seconds = _timestamp_seconds(values.get("timestamp"))
        if seconds is None:
            continue  # skip records without a timestamp
        stamped.append((seconds, values))

    # sorted() is stable, so equal timestamps keep file order
    stamped.sort(key=lambda item: item[0])
    if not stamped:
        return ()

    origin = stamped[0][0]
    return tuple(_to_record(int(round(seconds - origin)), values) for seconds, values in stamped)


def _timestamp_seconds(value: Any) -> Optional[float]:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return (value - _FIT_EPOCH).total_seconds()
    # fitparse leaves date_time values below 0x10000000 as raw relative seconds
    if isinstance(value, (int, float)):
        return float(value)
    return None


def _first_present(values: Dict[str, Any], *names: str) -> Optional[float]:
    for name in names:
        value = values.get(name)
        if isinstance(value, (int, float)):
            return float(value)
    return None


def _to_record(timestamp: int, values: Dict[str, Any]) -> DecodedRecord:
    heart_rate: Optional[int] = None
    raw_hr = values.get("heart_rate")
    if isinstance(raw_hr, (int, float)) and raw_hr > 0:
        heart_rate = int(raw_hr)

    speed_ms = _first_present(values, "enhanced_speed", "speed")
    if speed_ms is not None and speed_ms < 0:
        speed_ms = None

    lat: Optional[float] = None
    lon: Optional[float] = None
    raw_lat = values.get("position_lat")
    raw_lon = values.get("position_long")
    if isinstance(raw_lat, int) and isinstance(raw_lon, int):
        lat = raw_lat * _SEMICIRCLE_TO_DEGREES
        lon = raw_lon * _SEMICIRCLE_TO_DEGREES

    return DecodedRecord(
        timestamp=timestamp,
        heart_rate=heart_rate,
        speed_ms=speed_ms,
        elevation_meters=_first_present(values, "enhanced_altitude", "altitude"),
        lat=lat,
        lon=lon,
        distance_meters=_first_present(values, "distance"),
    )
