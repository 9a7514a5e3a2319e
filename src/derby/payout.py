"""Money arithmetic. All amounts are integer cents."""


def scratch_amount_cents(
    standard_bet_cents: int, order: int, elimination_multiplier: int
) -> int:
    """Per-card penalty for the horse scratched at position `order` (1-4)."""
    return standard_bet_cents * order * elimination_multiplier


def split_pot(pot_cents: int, shares: dict[int, int]) -> dict[int, int]:
    """
    Split the pot over the holders of the winning horse.
    ----

    shares maps seat index -> number of winning cards held.
    Returns seat index -> cents credited, for seats holding at least one share.

    Every share is worth pot // total_shares. The leftover cents (pot % total_shares) all go to
    the lowest seat index holding a share.
    Nothing is returned when nobody holds a share (or the pot is empty): the pot is forfeited.
    """
    holders = sorted(seat for seat, count in shares.items() if count > 0)
    total_shares = sum(shares[seat] for seat in holders)
    if total_shares <= 0 or pot_cents <= 0:
        return {}

    per_share, remainder = divmod(pot_cents, total_shares)
    credits = {seat: shares[seat] * per_share for seat in holders}
    credits[holders[0]] += remainder
    return credits


def format_money(cents: int) -> str:
    return f"${cents / 100:,.2f}"
