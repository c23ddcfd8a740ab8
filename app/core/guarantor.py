"""Guarantor eligibility scoring shown next to members when a borrower picks a guarantor."""


def eligibility_score(total_savings: float, total_investment: float, has_active_loans: bool) -> int:
    score = 0
    if total_savings >= 1_000_000:
        score += 3
    elif total_savings >= 500_000:
        score += 2
    elif total_savings >= 100_000:
        score += 1

    if total_investment >= 500_000:
        score += 2
    elif total_investment >= 100_000:
        score += 1

    # approved, active or completed loans count against the member
    if has_active_loans:
        score -= 1
    return max(0, score)


def is_eligible_guarantor(total_savings: float) -> bool:
    return (total_savings or 0) > 0
