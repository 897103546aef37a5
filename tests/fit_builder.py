"""
Tiny FIT encoder used to build test inputs in-process.

Only covers what the tests need: one definition message followed by one data
message per call, little-endian, no compressed timestamps or developer
fields. Values are passed already scaled (e.g. speed in mm/s); None writes
the base type's invalid value.
"""
import struct
from typing import List, Optional, Sequence, Tuple

from fitlog.ingest.decoder import fit_crc

# FIT base types: (type byte, struct format, invalid value)
ENUM = (0x00, "B", 0xFF)
UINT8 = (0x02, "B", 0xFF)
UINT16 = (0x84, "H", 0xFFFF)
SINT32 = (0x85, "i", 0x7FFFFFFF)
UINT32 = (0x86, "I", 0xFFFFFFFF)
UINT32Z = (0x8C, "I", 0x00000000)

# Global message numbers
FILE_ID = 0
SESSION = 18
RECORD = 20

# FIT seconds since 1989-12-31; must be >= 0x10000000 to decode as a datetime
BASE_TS = 1_000_000_000

SPORT_RUNNING = 1
SPORT_CYCLING = 2
SPORT_SWIMMING = 5

FILE_TYPE_ACTIVITY = 4
FILE_TYPE_COURSE = 6

Field = Tuple[int, tuple, Optional[int]]  # (field number, base type, value)
Message = Tuple[int, List[Field]]          # (global message number, fields)


def encode_message(global_num: int, fields: Sequence[Field], local: int = 0) -> bytes:
    definition = struct.pack("<BBBHB", 0x40 | local, 0, 0, global_num, len(fields))
    fmt = "<"
    values = []
    for number, (type_byte, type_fmt, invalid), value in fields:
        definition += struct.pack("<BBB", number, struct.calcsize(type_fmt), type_byte)
        fmt += type_fmt
        values.append(invalid if value is None else value)
    data = struct.pack("<B", local) + struct.pack(fmt, *values)
    return definition + data


def build_fit(messages: Sequence[Message], header_crc: bool = True) -> bytes:
    body = b"".join(encode_message(num, fields) for num, fields in messages)
    header = struct.pack("<BBHI4s", 14, 0x20, 2132, len(body), b".FIT")
    header += struct.pack("<H", fit_crc(header) if header_crc else 0)
    content = header + body
    return content + struct.pack("<H", fit_crc(content))


# ─── Message helpers ───────────────────────────────────────────────────────────

def file_id(file_type: int = FILE_TYPE_ACTIVITY) -> Message:
    return (FILE_ID, [
        (0, ENUM, file_type),
        (1, UINT16, 1),           # manufacturer: garmin
        (2, UINT16, 2700),        # product
        (3, UINT32Z, 123456789),  # serial number
        (4, UINT32, BASE_TS),     # time_created
    ])


def session(
    sport: Optional[int] = SPORT_RUNNING,
    elapsed_s: Optional[float] = None,
    distance_m: Optional[float] = None,
    calories: Optional[int] = None,
    start_offset: int = 0,
) -> Message:
    return (SESSION, [
        (253, UINT32, BASE_TS + start_offset + int(elapsed_s or 0)),  # timestamp
        (2, UINT32, BASE_TS + start_offset),                          # start_time
        (5, ENUM, sport),
        (7, UINT32, None if elapsed_s is None else int(round(elapsed_s * 1000))),
        (9, UINT32, None if distance_m is None else int(round(distance_m * 100))),
        (11, UINT16, calories),
    ])


def record(
    offset_s: int,
    heart_rate: Optional[int] = None,
    speed_ms: Optional[float] = None,
    altitude_m: Optional[float] = None,
    lat_semicircles: Optional[int] = None,
    lon_semicircles: Optional[int] = None,
    distance_m: Optional[float] = None,
) -> Message:
    return (RECORD, [
        (253, UINT32, BASE_TS + offset_s),
        (0, SINT32, lat_semicircles),
        (1, SINT32, lon_semicircles),
        (2, UINT16, None if altitude_m is None else int(round((altitude_m + 500) * 5))),
        (3, UINT8, heart_rate),
        (5, UINT32, None if distance_m is None else int(round(distance_m * 100))),
        (6, UINT16, None if speed_ms is None else int(round(speed_ms * 1000))),
    ])


def vendor_message() -> Message:
    """A manufacturer-specific message the decoder has no profile for."""
    return (0xFF00, [(0, UINT8, 42), (1, UINT16, 7)])


# ─── Canned activities ─────────────────────────────────────────────────────────

RUN_HEART_RATES = [120, 132, 144, 156, 168]


def run_45min(with_heart_rate: bool = True) -> bytes:
    """45-minute run, 8.4 km, HR cycling 120..168 bpm (mean 144)."""
    messages: List[Message] = [file_id()]
    for i in range(45):
        hr = RUN_HEART_RATES[i % len(RUN_HEART_RATES)] if with_heart_rate else None
        messages.append(record(
            i * 60,
            heart_rate=hr,
            speed_ms=3.111,
            altitude_m=100.0,
            distance_m=i * 186.0,
        ))
    messages.append(session(SPORT_RUNNING, elapsed_s=2700, distance_m=8400, calories=612))
    return build_fit(messages)
