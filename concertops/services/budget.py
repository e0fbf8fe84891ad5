from typing import Dict

from concertops.models.types import BudgetData, BudgetIn, BudgetSummary

COST_VARIANCE = 0.10

CATEGORIES = (
    "travel", "hotels", "per_diems", "crew_wages", "production", "buses",
    "trucks", "insurance", "merch_costs", "contingency", "other",
)


def line_items(data: BudgetData) -> Dict[str, float]:
    return {k: float(getattr(data, k) or 0.0) for k in CATEGORIES}


def calculate_budget(b: BudgetIn) -> BudgetSummary:
    items = line_items(b.budget_data)
    total = round(sum(items.values()), 2)
    largest = max(items, key=items.get) if total > 0 else None
    if not b.num_shows or b.avg_guarantee is None:
        return BudgetSummary(total_cost=total, largest_category=largest)
    gross = b.num_shows * b.avg_guarantee
    # Margin range assumes actual costs land within +/- COST_VARIANCE of the plan
    return BudgetSummary(
        total_cost=total,
        projected_gross=round(gross, 2),
        estimated_margin_low=round(gross - total * (1 + COST_VARIANCE), 2),
        estimated_margin_high=round(gross - total * (1 - COST_VARIANCE), 2),
        largest_category=largest,
    )


def build_budget_prompt(b: BudgetIn, summary: BudgetSummary) -> str:
    c = b.currency
    guarantee = f"{c} {b.avg_guarantee:,.2f}" if b.avg_guarantee is not None else "not specified"
    lines = [
        "Generate a detailed budget template for the following tour:",
        f"- Tour type: {b.tour_type}",
        f"- Scale: {b.tour_scale}",
        f"- Number of shows: {b.num_shows or 'unknown'}",
        f"- Average capacity: {b.avg_capacity or 'unknown'}",
        f"- Average guarantee/expected gross: {guarantee}",
        f"- Regions: {b.regions}",
        f"- Currency: {c}",
    ]
    filled = {k: v for k, v in line_items(b.budget_data).items() if v}
    if filled:
        lines.append("")
        lines.append("Known line items so far:")
        lines += [f"- {k.replace('_', ' ')}: {c} {v:,.2f}" for k, v in filled.items()]
        lines.append(f"- Total planned cost: {c} {summary.total_cost:,.2f}")
    if b.budget_data.notes:
        lines.append(f"Notes: {b.budget_data.notes}")
    lines.append("")
    lines.append(
        "Provide a structured budget with all major categories, estimated ranges for each, "
        "and show the estimated margin range."
    )
    return "\n".join(lines)
