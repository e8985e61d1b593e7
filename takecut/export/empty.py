"""
Zero-duration output containers.

Trim penceresi tamamen kesildiğinde engine çağrılmaz; istenen formatta
geçerli ama süresi sıfır olan bir dosya üretilir.

MP4: ftyp + moov(mvhd, duration=0), track yok.
GIF: 1x1 şeffaf, tek kare, delay=0 GIF89a.
"""

from __future__ import annotations

import struct

from takecut.core.models import ExportFormat

MP4_TIMESCALE = 1000

# mvhd unity matrix (16.16 / 2.30 fixed point)
_UNITY_MATRIX = (0x00010000, 0, 0, 0, 0x00010000, 0, 0, 0, 0x40000000)


def _box(box_type: bytes, payload: bytes) -> bytes:
    return struct.pack(">I", 8 + len(payload)) + box_type + payload


def empty_mp4() -> bytes:
    """Track'siz, süresi 0 olan ISO-BMFF dosyası."""
    ftyp = _box(
        b"ftyp",
        b"isom" + struct.pack(">I", 0x200) + b"isom" + b"iso2" + b"mp41",
    )

    mvhd_payload = b"".join([
        struct.pack(">B3x", 0),                 # version 0, flags
        struct.pack(">II", 0, 0),               # creation / modification time
        struct.pack(">II", MP4_TIMESCALE, 0),   # timescale, duration
        struct.pack(">IH", 0x00010000, 0x0100), # rate 1.0, volume 1.0
        bytes(10),                              # reserved
        struct.pack(">9I", *_UNITY_MATRIX),
        bytes(24),                              # pre_defined
        struct.pack(">I", 1),                   # next_track_ID
    ])
    moov = _box(b"moov", _box(b"mvhd", mvhd_payload))
    return ftyp + moov


def empty_gif() -> bytes:
    """Tek karelik, şeffaf, delay=0 GIF."""
    header = b"GIF89a"
    # 1x1, global color table (2 renk)
    screen = struct.pack("<HHBBB", 1, 1, 0x80, 0, 0)
    palette = b"\x00\x00\x00\xff\xff\xff"
    # Graphic control: transparent index 0, delay 0
    control = b"\x21\xf9\x04" + struct.pack("<BHB", 0x01, 0, 0) + b"\x00"
    descriptor = b"\x2c" + struct.pack("<HHHHB", 0, 0, 1, 1, 0)
    # LZW min code size 2: clear, 0, end-of-information
    image_data = b"\x02" + b"\x02\x44\x01" + b"\x00"
    return header + screen + palette + control + descriptor + image_data + b"\x3b"


def empty_output(export_format: ExportFormat) -> bytes:
    if export_format is ExportFormat.GIF:
        return empty_gif()
    return empty_mp4()
