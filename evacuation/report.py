from __future__ import annotations

"""
Printable summary of candidate evacuation routes.

build_pdf() writes a single-page PDF by hand: one Helvetica text object,
no compression, no font embedding. Enough for a one-page route sheet;
lines past the bottom margin are simply cut off by the page box.
"""

import re
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from common.types import CATEGORY_LABEL, RouteOption
from common.utils import round_half_up, to_fixed


PAGE_WIDTH = 612    # US Letter, points
PAGE_HEIGHT = 792
LEFT_MARGIN = 72
START_Y = 760
LINE_HEIGHT = 18
FONT_SIZE = 12

_NON_PRINTABLE = re.compile(r"[^\x20-\x7E]")


# -------------------------
# Formatting
# -------------------------
def format_distance(meters: Optional[float]) -> str:
    if meters is None:
        return "—"
    if meters < 1000:
        return f"{round_half_up(meters)} m"
    return f"{to_fixed(meters / 1000, 1)} km"


def format_duration(seconds: Optional[float]) -> str:
    if seconds is None:
        return "—"
    minutes = round_half_up(seconds / 60)
    if minutes < 1:
        return "<1 min"
    if minutes < 60:
        return f"{minutes} min"
    hours, rest = divmod(minutes, 60)
    return f"{hours} h {rest} min" if rest else f"{hours} h"


def format_timestamp(ts: datetime) -> str:
    """US style, no zero padding: 7/5/2025, 3:04:05 PM"""
    hour = ts.hour % 12 or 12
    ampm = "AM" if ts.hour < 12 else "PM"
    return f"{ts.month}/{ts.day}/{ts.year}, {hour}:{ts.minute:02d}:{ts.second:02d} {ampm}"


def _value_or_na(value: Optional[str]) -> str:
    if not value or not value.strip():
        return "N/A"
    return value.strip()


def build_summary_lines(
    start: Optional[Tuple[float, float]],
    options: Sequence[RouteOption],
    selected_id: Optional[str] = None,
    generated_at: Optional[datetime] = None,
) -> List[str]:
    """Text lines for the route sheet, one site block per option."""
    generated_at = generated_at or datetime.now()
    selected = next((o.site for o in options if o.site.id == selected_id), None)

    lines = ["Flood Evacuation & Low-Water Routes", ""]
    if start is not None:
        lines.append(f"Start coordinates: {to_fixed(start[0], 5)}, {to_fixed(start[1], 5)}")
    lines.append(f"Generated: {format_timestamp(generated_at)}")
    lines.append(f"Selected site: {selected.name if selected else 'None'}")
    lines.append("")

    for i, opt in enumerate(options, start=1):
        site = opt.site
        rt = opt.route
        dist = format_distance(rt.distance_m) if rt and rt.distance_m is not None else "N/A"
        dur = format_duration(rt.duration_s) if rt and rt.duration_s is not None else "N/A"
        mark = " (selected)" if site.id == selected_id else ""
        lines += [
            f"{i}. {site.name}{mark}",
            f"Category: {CATEGORY_LABEL[site.category]}",
            f"Address: {_value_or_na(site.address)}",
            f"Phone: {_value_or_na(site.phone)}",
            f"Status: {_value_or_na(site.status)}",
            f"OSRM route: {dist} · {dur}",
            f"Crow distance: {format_distance(opt.crow_distance_m)}",
            f"Notes: {_value_or_na(site.note)}",
            f"Source: {_value_or_na(site.source)}",
            "",
        ]
    return lines


# -------------------------
# PDF writer
# -------------------------
def _sanitize(line: str) -> str:
    # Helvetica/WinAnsi without an encoding dict: printable ASCII only
    cleaned = _NON_PRINTABLE.sub(" ", line).rstrip()
    return cleaned or " "


def _escape(line: str) -> str:
    return line.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def build_pdf(lines: Sequence[str]) -> bytes:
    """Single-page PDF 1.3 document with one text line per entry."""
    cleaned = [_sanitize(l) for l in (lines or [" "])]
    text = "\n".join(
        f"1 0 0 1 {LEFT_MARGIN} {START_Y - i * LINE_HEIGHT} Tm\n({_escape(l)}) Tj"
        for i, l in enumerate(cleaned)
    )
    content = f"BT\n/F1 {FONT_SIZE} Tf\n{text}\nET"

    objects = [
        "1 0 obj\n<< /Type /Catalog /Pages 2 0 R >>\nendobj",
        "2 0 obj\n<< /Type /Pages /Kids [3 0 R] /Count 1 >>\nendobj",
        "3 0 obj\n<< /Type /Page /Parent 2 0 R "
        f"/MediaBox [0 0 {PAGE_WIDTH} {PAGE_HEIGHT}] /Contents 4 0 R "
        "/Resources << /Font << /F1 5 0 R >> >> >>\nendobj",
        f"4 0 obj\n<< /Length {len(content.encode('ascii'))} >>\nstream\n{content}\nendstream\nendobj",
        "5 0 obj\n<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>\nendobj",
    ]

    out = bytearray(b"%PDF-1.3\n")
    offsets = []
    for obj in objects:
        offsets.append(len(out))
        out += f"{obj}\n".encode("ascii")

    xref_at = len(out)
    xref = [f"xref\n0 {len(objects) + 1}\n", "0000000000 65535 f \n"]
    xref += [f"{off:010d} 00000 n \n" for off in offsets]
    out += "".join(xref).encode("ascii")
    out += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_at}\n%%EOF"
    ).encode("ascii")
    return bytes(out)
