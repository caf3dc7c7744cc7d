"""
Services - Score Aggregator

Folds per-task analytics records into a page's score summary.
"""

from typing import Iterable, List

from material_engine.schemas import Achievement, Page, PageScores, TaskProgress


class ScoreAggregator:
    """Computes score, progress and star tiers for pages."""

    STARS_MAX = 3

    def stars(self, score: float, score_max: float) -> int:
        """
        Star tier from the score percentage.

        Args:
            score: Achieved score
            score_max: Maximum score declared by the page

        Returns:
            0 below 1%, 1 below 34%, 2 below 67%, otherwise 3
        """
        percent = score / score_max if score_max else 0
        if percent < 0.01:
            return 0
        if percent < 0.34:
            return 1
        if percent < 0.67:
            return 2
        return 3

    def achievement(self, scores: PageScores) -> Achievement:
        """
        Coarse achievement tier, independent of stars.

        Pages without a maximum score only track whether they were visited.
        """
        if not scores.score_max:
            return Achievement(tier=1 if scores.visited else 0, max_tier=1)

        percent = scores.score / scores.score_max
        if percent <= 0:
            tier = 0
        elif percent <= 0.34:
            tier = 1
        elif percent <= 0.67:
            tier = 2
        else:
            tier = 3
        return Achievement(tier=tier, max_tier=3)

    def aggregate(self, page: Page, records: Iterable[TaskProgress]) -> PageScores:
        """
        Build a score summary for a page from its task records.

        The page's declared score maximum is kept. Progress is the mean task
        progress (given in percent) when the page declares tasks.
        """
        records: List[TaskProgress] = list(records)
        score_max = page.scores.score_max
        score = sum(record.score for record in records)

        task_count = page.tasks or max((record.tasks for record in records), default=0)
        if task_count:
            progress = sum(record.progress for record in records) / task_count / 100
        else:
            progress = 0.0

        return PageScores(
            score=score,
            score_max=score_max,
            progress=min(max(progress, 0.0), 1.0),
            visited=bool(records),
            stars=self.stars(score, score_max),
            stars_max=self.STARS_MAX,
        )

    def apply(self, page: Page, records: Iterable[TaskProgress]) -> Page:
        """Replace the page's scores in place and return the page."""
        page.scores = self.aggregate(page, records)
        return page
