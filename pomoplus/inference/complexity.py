"""
Task Complexity Scorer — deterministic 0-100 complexity score for a task.

Eight factors in [0, 1] are derived from the task's size, priority and tags,
then combined with fixed weights (summing to 1.0):

  duration      ← estimated pomodoros (saturates at 10)
  priority      ← high / medium / low
  tags          ← tag count (saturates at 5)
  dependencies  ← constant until task relationships exist
  context, cognitive, physical, emotional ← keyword hits in tag text

The score is a pure function of the task: nothing is stored and every query
recomputes it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Sequence

from ..models import Priority, Task


@dataclass
class ComplexityFactors:
    duration: float
    priority: float
    tags: float
    dependencies: float
    context: float
    cognitive: float
    physical: float
    emotional: float


@dataclass
class ComplexityScore:
    overall: int                 # 0-100, half-up rounded
    raw: float                   # unrounded weighted sum
    factors: ComplexityFactors
    level: str                   # simple | moderate | complex | very-complex
    recommendations: List[str]
    estimated_difficulty: int    # 1-10
    time_multiplier: float       # 1.0-1.5


WEIGHTS: Dict[str, float] = {
    "duration": 0.20,
    "priority": 0.15,
    "tags": 0.10,
    "dependencies": 0.10,
    "context": 0.15,
    "cognitive": 0.15,
    "physical": 0.10,
    "emotional": 0.05,
}

_PRIORITY_FACTOR = {Priority.HIGH: 0.8, Priority.MEDIUM: 0.5, Priority.LOW: 0.2}

_CONTEXT_KEYWORDS = ("analysis", "research", "planning", "coordination")
_COGNITIVE_KEYWORDS = ("analysis", "research", "planning", "design", "writing", "learning")
_PHYSICAL_KEYWORDS = ("cleaning", "moving", "setup", "assembly", "exercise")
_EMOTIONAL_KEYWORDS = ("communication", "presentation", "meeting", "evaluation", "feedback")

_DEPENDENCIES_PLACEHOLDER = 0.3

# (factor, trigger, advice), emitted in factor declaration order when the
# factor strictly exceeds its trigger
_RECOMMENDATIONS = [
    ("duration", 0.7, "Long task: split it into smaller pieces"),
    ("tags", 0.7, "Many tags: rank the sub-goals before starting"),
    ("context", 0.7, "Complex context: plan the steps in detail first"),
    ("cognitive", 0.7, "High cognitive load: work somewhere quiet"),
    ("physical", 0.6, "Physical effort: check your energy level first"),
    ("emotional", 0.6, "Emotional load: consider asking for support"),
]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def complexity_level(overall: float) -> str:
    if overall < 30:
        return "simple"
    if overall < 50:
        return "moderate"
    if overall < 70:
        return "complex"
    return "very-complex"


def _tag_hit(tags: Sequence[str], keywords: Sequence[str]) -> bool:
    lowered = [t.lower() for t in tags]
    return any(k in tag for tag in lowered for k in keywords)


def compute_factors(task: Task) -> ComplexityFactors:
    return ComplexityFactors(
        duration=min(1.0, task.estimated_pomodoros / 10),
        priority=_PRIORITY_FACTOR[Priority(task.priority)],
        tags=min(1.0, len(task.tags) / 5),
        dependencies=_DEPENDENCIES_PLACEHOLDER,
        context=0.8 if _tag_hit(task.tags, _CONTEXT_KEYWORDS) else 0.3,
        cognitive=0.8 if _tag_hit(task.tags, _COGNITIVE_KEYWORDS) else 0.3,
        physical=0.7 if _tag_hit(task.tags, _PHYSICAL_KEYWORDS) else 0.2,
        emotional=0.6 if _tag_hit(task.tags, _EMOTIONAL_KEYWORDS) else 0.2,
    )


class ComplexityScorer:
    """Stateless scorer. Call `score` with any Task."""

    def score(self, task: Task) -> ComplexityScore:
        factors = compute_factors(task)
        raw = sum(getattr(factors, name) * weight for name, weight in WEIGHTS.items()) * 100
        raw = max(0.0, min(raw, 100.0))

        recommendations = [
            advice for name, trigger, advice in _RECOMMENDATIONS
            if getattr(factors, name) > trigger
        ]

        return ComplexityScore(
            overall=round_half_up(raw),
            raw=raw,
            factors=factors,
            level=complexity_level(raw),
            recommendations=recommendations,
            estimated_difficulty=max(1, min(10, round_half_up(raw / 100 * 10))),
            time_multiplier=1 + raw / 100 * 0.5,
        )

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def stats(self, tasks: Sequence[Task], top_n: int = 5) -> Dict:
        if not tasks:
            return {
                "average_complexity": 0,
                "distribution": {},
                "most_complex": [],
                "least_complex": [],
            }

        scored = [(task, self.score(task)) for task in tasks]
        average = sum(s.overall for _, s in scored) / len(scored)

        distribution: Dict[str, int] = {}
        for _, s in scored:
            distribution[s.level] = distribution.get(s.level, 0) + 1

        # sorted() is stable: ties keep input order in both directions
        most = sorted(scored, key=lambda item: -item[1].overall)[:top_n]
        least = sorted(scored, key=lambda item: item[1].overall)[:top_n]

        return {
            "average_complexity": round_half_up(average),
            "distribution": distribution,
            "most_complex": [_summary(t, s) for t, s in most],
            "least_complex": [_summary(t, s) for t, s in least],
        }

    def tasks_by_level(self, tasks: Sequence[Task], level: str) -> List[Task]:
        return [t for t in tasks if self.score(t).level == level]

    def recommendations(self, tasks: Sequence[Task], history: "ComplexityHistory") -> List[str]:
        stats = self.stats(tasks)
        dist = stats["distribution"]
        recs: List[str] = []
        if stats["average_complexity"] > 60:
            recs.append("Overall complexity is high: break tasks into smaller pieces")
        if history.trends()["trend"] == "increasing":
            recs.append("Complexity is rising: mix in some simpler tasks")
        if dist.get("very-complex", 0) > 3:
            recs.append("Too many very complex tasks: simplify a few of them")
        if dist.get("simple", 0) < 2:
            recs.append("Few simple tasks: add quick wins for balance")
        return recs


def _summary(task: Task, score: ComplexityScore) -> Dict:
    return {"task_id": task.id, "title": task.title, "score": score.overall, "level": score.level}


# ---------------------------------------------------------------------------
# Estimation history
# ---------------------------------------------------------------------------

@dataclass
class ComplexityHistoryEntry:
    task_id: str
    score: ComplexityScore
    timestamp: datetime
    actual_duration: float       # minutes
    accuracy: float              # 0-1


@dataclass
class ComplexityHistory:
    """Score-vs-actual log used to spot drift in estimation accuracy."""
    entries: List[ComplexityHistoryEntry] = field(default_factory=list)
    minutes_per_pomodoro: int = 25
    clock: Callable[[], datetime] = field(default=datetime.now, repr=False, compare=False)

    def record(self, task: Task, actual_duration: float, scorer: ComplexityScorer) -> ComplexityHistoryEntry:
        estimated = task.estimated_pomodoros * self.minutes_per_pomodoro
        accuracy = max(0.0, 1 - abs(actual_duration - estimated) / estimated) if estimated else 0.0
        entry = ComplexityHistoryEntry(
            task_id=task.id,
            score=scorer.score(task),
            timestamp=self.clock(),
            actual_duration=actual_duration,
            accuracy=accuracy,
        )
        self.entries.append(entry)
        return entry

    def trends(self) -> Dict:
        if len(self.entries) < 2:
            return {"trend": "stable", "change": 0, "period": "insufficient-data"}

        recent = self.entries[-10:]
        older = self.entries[-20:-10]
        recent_avg = sum(e.score.overall for e in recent) / len(recent)
        older_avg = sum(e.score.overall for e in older) / len(older) if older else recent_avg

        change = (recent_avg - older_avg) / older_avg * 100 if older_avg else 0.0
        if change > 5:
            trend = "increasing"
        elif change < -5:
            trend = "decreasing"
        else:
            trend = "stable"
        return {"trend": trend, "change": round_half_up(change), "period": "recent"}
