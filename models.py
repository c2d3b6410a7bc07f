# models.py

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class NormalizedMessage:
    content: str
    sender_name: Optional[str]
    timestamp: datetime                 # siempre tz-aware (UTC)
    timestamp_inferred: bool = False    # True si el HTML no traía fecha y se usó "ahora"

    @property
    def ts_ms(self) -> int:
        return int(self.timestamp.timestamp() * 1000)


@dataclass(frozen=True)
class ParsedExport:
    messages: Tuple[NormalizedMessage, ...]
    group_name: str
    total_items: int

    @property
    def valid_messages(self) -> int:
        return len(self.messages)


@dataclass(frozen=True)
class ExportInfo:
    group_name: str
    total_messages: int
    valid_messages: int
    date_start: Optional[datetime]
    date_end: Optional[datetime]


@dataclass(frozen=True)
class CombinedExportInfo:
    group_name: str
    total_messages: int
    valid_messages: int
    date_start: Optional[datetime]
    date_end: Optional[datetime]
    files: Tuple[str, ...]
    exports: Tuple[ParsedExport, ...] = field(default=(), repr=False)

    def to_dict(self) -> dict:
        return {
            "groupName": self.group_name,
            "files": list(self.files),
            "totalMessages": self.total_messages,
            "validMessages": self.valid_messages,
            "dateRange": {
                "start": self.date_start.isoformat() if self.date_start else None,
                "end": self.date_end.isoformat() if self.date_end else None,
            },
        }


@dataclass(frozen=True)
class ImportResult:
    imported: int
    skipped: int
    total: int
    group_name: Optional[str] = None


@dataclass(frozen=True)
class HeatmapCell:
    day: int    # 0-6 (domingo = 0)
    hour: int   # 0-23
    count: int


@dataclass(frozen=True)
class ActivityReport:
    heatmap: List[HeatmapCell]
    max_count: int
    total_messages: int
    date_start: datetime
    date_end: datetime

    def to_dict(self) -> dict:
        return {
            "heatmap": [
                {"day": c.day, "hour": c.hour, "count": c.count} for c in self.heatmap
            ],
            "maxCount": self.max_count,
            "totalMessages": self.total_messages,
            "dateRange": {
                "start": self.date_start.isoformat(),
                "end": self.date_end.isoformat(),
            },
        }
