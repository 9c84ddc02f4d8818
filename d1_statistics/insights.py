"""Plain-language insights from aggregate sales statistics."""

from .types import AggregateStats

PLACEHOLDER_INSIGHT = "Analyzing your data patterns..."

REVENUE_SWING_PERCENT = 10.0
STAGE_CONCENTRATION_DEALS = 5
EXCELLENT_CONVERSION_PERCENT = 25.0
POOR_CONVERSION_PERCENT = 10.0


def generate_insights(stats: AggregateStats) -> list[str]:
    """
    Build insight strings from revenue trend, pipeline concentration and
    conversion rate. Returns a single placeholder when no rule fires.

    Revenue compares the average of the last three months against the three
    before them; with no earlier window there is nothing to compare.
    """
    insights: list[str] = []

    revenues = stats.revenue_by_month
    if len(revenues) > 1:
        recent = revenues[-3:]
        previous = revenues[-6:-3]
        if previous:
            recent_avg = sum(recent) / len(recent)
            previous_avg = sum(previous) / len(previous)
            growth = ((recent_avg - previous_avg) / max(previous_avg, 1)) * 100

            if abs(growth) > REVENUE_SWING_PERCENT:
                direction = "increased" if growth > 0 else "decreased"
                insights.append(f"Revenue {direction} by {abs(growth):.1f}% in recent months")

    concentrated = sum(1 for count in stats.pipeline_stage_counts if count > STAGE_CONCENTRATION_DEALS)
    if concentrated > 0:
        insights.append(f"{concentrated} pipeline stages have significant deal concentration")

    if stats.conversion_rate > 0:
        if stats.conversion_rate > EXCELLENT_CONVERSION_PERCENT:
            insights.append("Conversion rate is above industry average - excellent performance!")
        elif stats.conversion_rate < POOR_CONVERSION_PERCENT:
            insights.append("Conversion rate needs improvement - focus on qualification process")

    return insights or [PLACEHOLDER_INSIGHT]
