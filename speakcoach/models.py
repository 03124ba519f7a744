from dataclasses import dataclass, field, asdict, replace
from enum import Enum
from typing import Dict, List, Optional, Any


class RecordingState(str, Enum):
    """Phases of one recording cycle."""
    IDLE = "idle"
    RECORDING = "recording"
    PROCESSING = "processing"


@dataclass(frozen=True)
class LanguageOption:
    """A selectable practice/feedback locale."""
    name: str                        # Native display name, e.g. "Deutsch"
    code: str                        # e.g. "de-DE"
    flag: str


@dataclass(frozen=True)
class Phrase:
    """The target phrase the learner is asked to say."""
    text: str
    language: str                    # LanguageCode


@dataclass(frozen=True)
class AttemptResult:
    """Outcome of one recording-to-feedback cycle."""
    phrase: str
    spoken: str
    similarity: int                  # 0–100
    feedback: str
    timestamp: str                   # ISO-8601, UTC
    language: str                    # LanguageCode of the phrase

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AttemptResult":
        """Build from stored JSON; raises KeyError/TypeError/ValueError on malformed data."""
        return cls(
            phrase=str(data["phrase"]),
            spoken=str(data["spoken"]),
            similarity=int(data["similarity"]),
            feedback=str(data["feedback"]),
            timestamp=str(data["timestamp"]),
            # Entries written before the language field existed have none
            language=str(data.get("language") or "unknown"),
        )


@dataclass(frozen=True)
class Progress:
    """Gamified progression: level, XP toward the next level, streak and attempt count."""
    level: int = 1
    xp: int = 0
    xp_to_next_level: int = 100
    streak: int = 0
    practiced: int = 0

    BADGE_LEVEL = 5

    @property
    def percent(self) -> int:
        """Progress toward the next level, 0–100."""
        return int(self.xp * 100 / self.xp_to_next_level + 0.5)

    @property
    def has_consistent_learner_badge(self) -> bool:
        return self.level >= self.BADGE_LEVEL

    def evolve(self, **changes: Any) -> "Progress":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "xp": self.xp,
            "xpToNextLevel": self.xp_to_next_level,
            "streak": self.streak,
            "practiced": self.practiced,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Progress":
        """Build from stored JSON; raises on missing keys or out-of-range values."""
        progress = cls(
            level=int(data["level"]),
            xp=int(data["xp"]),
            xp_to_next_level=int(data["xpToNextLevel"]),
            streak=int(data.get("streak", 0)),
            practiced=int(data.get("practiced", 0)),
        )
        if (progress.level < 1 or progress.xp < 0 or progress.xp_to_next_level <= 0
                or progress.streak < 0 or progress.practiced < 0):
            raise ValueError(f"Progress values out of range: {data!r}")
        return progress


@dataclass(frozen=True)
class UserIdentity:
    """Profile produced by the login collaborator."""
    id: str
    name: str
    email: str
    picture: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserIdentity":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            email=str(data["email"]),
            picture=data.get("picture"),
        )


@dataclass
class ScoreBreakdown:
    """Components of a similarity score."""
    word_match: int = 0              # 0–100
    edit_distance: int = 0           # 0–100
    final: int = 0                   # 0–100 blended score


@dataclass
class HistoryStats:
    """Aggregates shown on the progress screen."""
    total_practiced: int = 0
    average_accuracy: int = 0
    best_accuracy: int = 0
    language_counts: Dict[str, int] = field(default_factory=dict)
    timeline: List[int] = field(default_factory=list)   # oldest → newest similarity


@dataclass(frozen=True)
class Notice:
    """Non-blocking user-facing notification (toast)."""
    level: str                       # "success" | "info" | "warning"
    message: str
