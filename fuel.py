"""Fuel efficiency figures over a car's fuel entries."""


def _sorted_by_date(entries):
    return sorted(entries, key=lambda e: e["date"])


def calculate_efficiency(entries):
    """Miles per gallon across consecutive fill-ups, or None.

    Only pairs where the odometer moved forward count; the later entry's
    fuel amount is what was burned over that distance.
    """
    if len(entries) < 2:
        return None
    ordered = _sorted_by_date(entries)
    total_distance = 0
    total_fuel = 0.0
    for prev, current in zip(ordered, ordered[1:]):
        distance = (current.get("mileage") or 0) - (prev.get("mileage") or 0)
        if distance > 0:
            total_distance += distance
            total_fuel += current.get("fuel_amount") or 0
    if total_distance <= 0 or total_fuel <= 0:
        return None
    return round(total_distance / total_fuel, 2)


def total_cost(entries):
    return sum(e.get("cost") or 0 for e in entries)


def cost_per_mile(entries):
    if not entries:
        return 0
    mileages = [e.get("mileage") or 0 for e in entries]
    span = max(mileages) - min(mileages)
    if span <= 0:
        return 0
    return round(total_cost(entries) / span, 2)


def efficiency_rating(efficiency):
    if efficiency is None:
        return "unknown"
    if efficiency >= 30:
        return "good"
    if efficiency >= 20:
        return "fair"
    return "poor"


def fuel_stats(entries):
    efficiency = calculate_efficiency(entries)
    return {
        "efficiency": efficiency,
        "rating": efficiency_rating(efficiency),
        "total_cost": round(total_cost(entries), 2),
        "cost_per_mile": cost_per_mile(entries),
        "entries": len(entries),
    }
