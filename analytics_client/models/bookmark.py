"""Bookmarked insight data model."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class BookmarkedInsight:
    """A saved insight, persisted by the bookmark store."""
    bookmark_id: str
    timestamp: datetime
    title: str
    query: str
    summary: Optional[str] = None
    chart_config: Optional[Dict[str, Any]] = None
    data: Optional[List[Any]] = None
    tags: List[str] = field(default_factory=list)
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the exported JSON field names."""
        return {
            "id": self.bookmark_id,
            "timestamp": self.timestamp.isoformat(),
            "title": self.title,
            "query": self.query,
            "summary": self.summary,
            "chartConfig": self.chart_config,
            "data": self.data,
            "tags": list(self.tags),
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BookmarkedInsight":
        """
        Rebuild a bookmark from its exported form.

        Raises:
            KeyError: If ``id`` or ``timestamp`` is missing
            ValueError: If ``timestamp`` is not ISO-8601
        """
        timestamp = data["timestamp"]
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        if not isinstance(timestamp, datetime):
            raise TypeError(f"Invalid bookmark timestamp: {timestamp!r}")
        tags = data.get("tags") or []
        return cls(
            bookmark_id=str(data["id"]),
            timestamp=timestamp,
            title=str(data.get("title", "")),
            query=str(data.get("query", "")),
            summary=data.get("summary"),
            chart_config=data.get("chartConfig"),
            data=data.get("data"),
            tags=list(dict.fromkeys(str(t) for t in tags)),
            notes=data.get("notes"),
        )
