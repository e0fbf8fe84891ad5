from typing import List

from concertops.models.types import SettlementData, SettlementIn

TAX_FEE_WARN_RATIO = 0.20
HOUSE_NUT_WARN_RATIO = 0.50


def _money(value: float) -> float:
    return round(float(value), 2)


def calculate_settlement(s: SettlementIn) -> SettlementData:
    """Versus-deal settlement: the artist receives the guarantee plus the
    overage percentage of whatever net receipts exceed the guarantee."""
    if s.capacity and s.avg_ticket_price:
        gross_potential = s.capacity * s.avg_ticket_price
    else:
        gross_potential = s.gross_tickets
    adjusted_gross = s.gross_tickets - s.total_taxes - s.total_fees
    house_nut = s.venue_rent + s.marketing_costs + s.production_reimbursements
    net_receipts = adjusted_gross - house_nut
    overage_pool = max(0.0, net_receipts - s.artist_guarantee)
    artist_overage = overage_pool * (s.overage_percentage / 100.0)
    total_artist_payment = s.artist_guarantee + artist_overage
    return SettlementData(
        gross_potential=_money(gross_potential),
        adjusted_gross=_money(adjusted_gross),
        house_nut=_money(house_nut),
        net_receipts=_money(net_receipts),
        overage_pool=_money(overage_pool),
        artist_overage=_money(artist_overage),
        total_artist_payment=_money(total_artist_payment),
        venue_share=_money(adjusted_gross - total_artist_payment),
    )


def settlement_watchouts(s: SettlementIn, data: SettlementData) -> List[str]:
    out: List[str] = []
    if not 0 <= s.overage_percentage <= 100:
        out.append(f"Overage split of {s.overage_percentage:g}% is outside 0-100%; check the deal memo.")
    if data.net_receipts < s.artist_guarantee:
        out.append(
            "Net receipts do not cover the guarantee: the artist is owed the guarantee only "
            "and the promoter carries the shortfall."
        )
    if s.gross_tickets > 0 and (s.total_taxes + s.total_fees) / s.gross_tickets > TAX_FEE_WARN_RATIO:
        out.append("Taxes and fees exceed 20% of gross; verify the ticketing and facility fee lines.")
    if data.adjusted_gross > 0 and data.house_nut / data.adjusted_gross > HOUSE_NUT_WARN_RATIO:
        out.append("House nut is more than half of adjusted gross; request backup for rent, marketing and production charges.")
    if data.gross_potential > 0 and s.gross_tickets < data.gross_potential * 0.5:
        out.append("Ticket gross is under half of the potential; confirm comps and kills before signing.")
    return out


def build_settlement_prompt(s: SettlementIn, data: SettlementData) -> str:
    c = s.currency
    lines = [
        "Walk me through the settlement for this show:",
        "",
        f"Show: {s.show_name or 'Single Show'}",
        f"Venue: {s.venue_name or 'Not specified'}, {s.venue_city or ''}",
        f"Date: {s.show_date.isoformat() if s.show_date else 'Not specified'}",
        f"Currency: {c}",
        "",
        "Financial figures:",
        f"- Gross ticket sales: {c} {s.gross_tickets:,.2f}",
        f"- Total taxes: {c} {s.total_taxes:,.2f}",
        f"- Total facility/service fees: {c} {s.total_fees:,.2f}",
        f"- Venue rent: {c} {s.venue_rent:,.2f}",
        f"- Marketing costs: {c} {s.marketing_costs:,.2f}",
        f"- Production reimbursements: {c} {s.production_reimbursements:,.2f}",
        f"- Artist guarantee: {c} {s.artist_guarantee:,.2f}",
        f"- Overage split (artist percentage): {s.overage_percentage:g}%",
    ]
    if s.merch_deal_details:
        lines.append(f"- Merch deal: {s.merch_deal_details}")
    lines += [
        "",
        "Pre-computed figures (verify them):",
        f"- Adjusted gross: {c} {data.adjusted_gross:,.2f}",
        f"- House nut: {c} {data.house_nut:,.2f}",
        f"- Net receipts: {c} {data.net_receipts:,.2f}",
        f"- Artist overage: {c} {data.artist_overage:,.2f}",
        f"- Total artist payment: {c} {data.total_artist_payment:,.2f}",
        "",
        "Provide:",
        "1. Step-by-step settlement calculation",
        "2. Final artist payment amount",
        "3. Any watchouts or common issues to watch for with these numbers",
    ]
    return "\n".join(lines)
