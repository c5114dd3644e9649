"""
Transcript data models.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Tuple


def format_offset(seconds: float) -> str:
    """Render an offset in seconds as ``HH:MM:SS`` (fractions are truncated)."""
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


@dataclass(frozen=True)
class TranscriptSegment:
    """One caption line; offsets and durations are in seconds."""
    start: float
    text: str
    duration: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": format_offset(self.start),
            "text": self.text,
            "duration": self.duration,
        }


@dataclass(frozen=True)
class RetrievalResult:
    """A fetched transcript. Segments keep the order the provider returned."""
    video_id: str
    title: str
    segments: Tuple[TranscriptSegment, ...]
    language: str = "unknown"

    @classmethod
    def build(cls, video_id: str, title: str, segments: Iterable[TranscriptSegment],
              language: str = "unknown") -> "RetrievalResult":
        return cls(video_id=video_id, title=title, segments=tuple(segments), language=language or "unknown")

    @property
    def segment_count(self) -> int:
        return len(self.segments)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the public response shape."""
        return {
            "title": self.title,
            "videoId": self.video_id,
            "transcript": [segment.to_dict() for segment in self.segments],
            "segmentCount": self.segment_count,
            "language": self.language,
        }


@dataclass(frozen=True)
class RetrievalOutcome:
    """Result of one retrieval plus where it was served from."""
    result: RetrievalResult
    cached: bool

    def to_dict(self) -> Dict[str, Any]:
        payload = self.result.to_dict()
        payload["cached"] = self.cached
        return payload
