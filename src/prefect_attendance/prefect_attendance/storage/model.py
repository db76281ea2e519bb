from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..core.enums import BackupType


@dataclass(frozen=True)
class QuotaInfo:
    available: int
    used: int
    percentage: float


@dataclass(frozen=True)
class StorageInfo:
    quota: QuotaInfo
    record_count: int
    last_backup: Optional[str]
    version: str
    integrity: bool


@dataclass(frozen=True)
class BackupMetadata:
    record_count: int
    created_at: str
    type: BackupType

    def to_dict(self) -> dict:
        return {"recordCount": self.record_count, "createdAt": self.created_at, "type": self.type.value}


@dataclass(frozen=True)
class BackupSnapshot:
    """Immutable full copy of the record set (persisted form of the records)."""

    timestamp: int
    version: str
    records: list[dict]
    metadata: BackupMetadata

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "version": self.version,
            "records": list(self.records),
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BackupSnapshot":
        meta = data.get("metadata") or {}
        records = data.get("records") or []
        return cls(
            timestamp=int(data.get("timestamp") or 0),
            version=str(data.get("version") or ""),
            records=list(records) if isinstance(records, list) else [],
            metadata=BackupMetadata(
                record_count=int(meta.get("recordCount", len(records) if isinstance(records, list) else 0)),
                created_at=str(meta.get("createdAt", "")),
                type=BackupType(meta.get("type", BackupType.AUTOMATIC.value)),
            ),
        )
