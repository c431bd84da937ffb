COMPARED_FIELDS = ("brand", "model", "year", "price", "color", "mileage")
LOWER_IS_BETTER = ("price", "mileage")
HIGHER_IS_BETTER = ("year",)


def compare_field(car1, car2, field):
    """Verdict for car1 against car2 on one field."""
    if not car1 or not car2:
        return "neutral"
    if field in LOWER_IS_BETTER:
        a, b = -(car1.get(field) or 0), -(car2.get(field) or 0)
    elif field in HIGHER_IS_BETTER:
        a, b = car1.get(field) or 0, car2.get(field) or 0
    else:
        return "neutral"
    if a > b:
        return "better"
    if a < b:
        return "worse"
    return "equal"


def service_summary(services):
    total = sum(s.get("cost") or 0 for s in services)
    count = len(services)
    return {
        "count": count,
        "total_cost": round(total, 2),
        "average_cost": round(total / count, 2) if count else 0,
    }


def compare_cars(car1, car2, services1, services2):
    return {
        "cars": [car1, car2],
        "fields": {field: compare_field(car1, car2, field) for field in COMPARED_FIELDS},
        "services": [service_summary(services1), service_summary(services2)],
    }
