"""
Group compatibility scoring.

One scorer, configured with weights, serves both the dashboard
recommendations and the quick "get matched" flow:

    score = subject       x |user subjects overlapping any group tag|
          + education     x [any tag overlaps the education level]
          + study_style   x [any tag overlaps the study style]
          + tag           x tag count
          + member        x member count
          + timezone      x [owner timezone equals user timezone]
          + owner_subject x |user subjects also listed by the owner|
          + tag_subject   x |tags overlapping any user subject|

"Overlap" is a case-insensitive substring test in either direction.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class MatchWeights:
    subject: float = 0.0
    education: float = 0.0
    study_style: float = 0.0
    tag: float = 0.0
    member: float = 0.0
    timezone: float = 0.0
    owner_subject: float = 0.0
    tag_subject: float = 0.0

    @property
    def uses_owner(self) -> bool:
        return bool(self.timezone or self.owner_subject)


@dataclass(frozen=True)
class MatchStrategy:
    name: str
    weights: MatchWeights
    limit: int
    # Only candidates scoring strictly above this are kept
    min_score: Optional[float] = None
    # How many available candidates are scored (None = all)
    candidate_limit: Optional[int] = None


WEIGHTED = MatchWeights(subject=10, education=5, study_style=3, tag=0.5, member=0.2)
OVERLAP = MatchWeights(timezone=2, owner_subject=1, tag_subject=1)


@dataclass
class MatchProfile:
    subjects: List[str] = field(default_factory=list)
    education_level: Optional[str] = None
    study_style: Optional[str] = None
    timezone: Optional[str] = None


@dataclass
class MatchCandidate:
    group_id: int
    tags: List[str] = field(default_factory=list)
    member_count: int = 0
    max_members: int = 0
    owner_timezone: Optional[str] = None
    owner_subjects: List[str] = field(default_factory=list)


def overlaps(a: Optional[str], b: Optional[str]) -> bool:
    if not a or not b:
        return False
    a, b = a.strip().lower(), b.strip().lower()
    if not a or not b:
        return False
    return a in b or b in a


def _any_overlap(value: Optional[str], tags: Sequence[str]) -> bool:
    return any(overlaps(value, tag) for tag in tags)


class MatchScorer:
    def __init__(self, weights: MatchWeights):
        self.weights = weights

    def score(self, user: MatchProfile, candidate: MatchCandidate) -> float:
        w = self.weights
        tags = [t for t in (candidate.tags or []) if t]
        subjects = [s for s in (user.subjects or []) if s]

        total = 0.0
        if w.subject:
            total += w.subject * sum(1 for s in subjects if _any_overlap(s, tags))
        if w.education and _any_overlap(user.education_level, tags):
            total += w.education
        if w.study_style and _any_overlap(user.study_style, tags):
            total += w.study_style
        total += w.tag * len(tags)
        total += w.member * candidate.member_count
        if w.timezone and user.timezone and user.timezone == candidate.owner_timezone:
            total += w.timezone
        if w.owner_subject:
            owner_subjects = set(candidate.owner_subjects or [])
            total += w.owner_subject * sum(1 for s in subjects if s in owner_subjects)
        if w.tag_subject:
            total += w.tag_subject * sum(1 for t in tags if _any_overlap(t, subjects))
        return total

    def rank(
        self,
        user: MatchProfile,
        candidates: Sequence[MatchCandidate],
        limit: Optional[int] = None,
        min_score: Optional[float] = None,
    ) -> List[Tuple[MatchCandidate, float]]:
        """Score and sort descending; ties go to larger groups, then older ids"""
        scored = [(c, self.score(user, c)) for c in candidates]
        if min_score is not None:
            scored = [(c, s) for c, s in scored if s > min_score]
        scored.sort(key=lambda item: (-item[1], -item[0].member_count, item[0].group_id))
        return scored[:limit] if limit is not None else scored
