from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..common.localization import get_localized_content
from ..core.enums import AssignmentType, AuthorType, ContentTier, StoryStatus, VerificationStatus, Visibility
from ..organizations.model import Channel, channel_to_dict

LocalizedText = Dict[str, str]


@dataclass(frozen=True)
class StoryCard:
    """One slide of a course."""

    card_id: str
    type: str
    title: LocalizedText
    content: LocalizedText
    media_url: str = ""
    duration: int = 0
    topics: List[str] = field(default_factory=list)
    interaction: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class Course:
    course_id: str
    author_id: str
    title: LocalizedText
    author_type: AuthorType = AuthorType.USER
    author_name: str = ""
    author_avatar_url: str = ""
    organization_id: Optional[str] = None
    channel_id: Optional[str] = None
    target_channel_ids: List[str] = field(default_factory=list)
    category_id: Optional[str] = None
    visibility: Visibility = Visibility.PUBLIC
    description: LocalizedText = field(default_factory=dict)
    thumbnail_url: str = ""
    duration: int = 0
    xp_reward: int = 0
    steps: List[StoryCard] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    topics: List[str] = field(default_factory=list)
    likes_count: int = 0
    popularity_score: int = 0
    priority: str = "NORMAL"
    is_new: bool = False
    is_featured: bool = False
    price: int = 0
    assignment_type: Optional[AssignmentType] = None
    target_departments: List[str] = field(default_factory=list)
    tier: ContentTier = ContentTier.COMMUNITY
    verification_status: VerificationStatus = VerificationStatus.VERIFIED
    quality_score: int = 0
    flag_count: int = 0
    created_at: int = 0

    def in_channel(self, channel_id: str) -> bool:
        return channel_id in self.target_channel_ids or self.channel_id == channel_id

    def localized_title(self, lang: Optional[str] = None) -> str:
        return get_localized_content(self.title, lang)


@dataclass(frozen=True)
class ChannelStory:
    channel: Channel
    status: StoryStatus
    next_course_id: Optional[str] = None
    progress_percent: float = 0.0


@dataclass(frozen=True)
class ExploreFeed:
    priority: List[Course]
    trending: List[Course]
    discovery: List[Course]


def card_to_dict(c: StoryCard) -> dict:
    return {
        "id": c.card_id,
        "type": c.type,
        "title": c.title,
        "content": c.content,
        "media_url": c.media_url,
        "duration": c.duration,
        "topics": list(c.topics),
        "interaction": c.interaction,
    }


def card_from_dict(d: dict) -> StoryCard:
    return StoryCard(
        card_id=str(d.get("id") or ""),
        type=d.get("type") or "INFO",
        title=d.get("title") or {},
        content=d.get("content") or {},
        media_url=d.get("media_url") or "",
        duration=int(d.get("duration") or 0),
        topics=list(d.get("topics") or []),
        interaction=d.get("interaction"),
    )


def course_to_dict(c: Course, lang: Optional[str] = None) -> dict:
    return {
        "id": c.course_id,
        "title": c.title,
        "localized_title": c.localized_title(lang),
        "description": c.description,
        "author_type": c.author_type.value,
        "author_id": c.author_id,
        "author_name": c.author_name,
        "author_avatar_url": c.author_avatar_url,
        "organization_id": c.organization_id,
        "channel_id": c.channel_id,
        "target_channel_ids": list(c.target_channel_ids),
        "category_id": c.category_id,
        "visibility": c.visibility.value,
        "thumbnail_url": c.thumbnail_url,
        "duration": c.duration,
        "xp_reward": c.xp_reward,
        "steps": [card_to_dict(s) for s in c.steps],
        "tags": list(c.tags),
        "topics": list(c.topics),
        "popularity_score": c.popularity_score,
        "priority": c.priority,
        "is_new": c.is_new,
        "assignment_type": c.assignment_type.value if c.assignment_type else None,
        "target_departments": list(c.target_departments),
        "tier": c.tier.value,
        "verification_status": c.verification_status.value,
        "quality_score": c.quality_score,
        "flag_count": c.flag_count,
        "created_at": c.created_at,
    }


def story_to_dict(s: ChannelStory) -> dict:
    return {
        "channel": channel_to_dict(s.channel),
        "status": s.status.value,
        "next_course_id": s.next_course_id,
        "progress_percent": s.progress_percent,
    }


@dataclass(frozen=True)
class ReviewOutcome:
    """What one review changes; applied atomically by the repository."""

    rating: int
    flag_delta: int = 0
    author_id: Optional[str] = None
    reputation_delta: int = 0
    xp_delta: int = 0
