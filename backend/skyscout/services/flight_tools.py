"""Local flight scoring helpers — pure computations fed into the advisor prompt."""

from skyscout.schemas.flight import FlightRecord


def layover_score(layover_minutes: float) -> dict:
    """Convenience score (0-10) for a single connection."""
    if layover_minutes < 45:
        return {"score": 2, "rating": "risky", "message": "Very tight connection, high risk of missing flight"}
    if layover_minutes < 90:
        return {"score": 6, "rating": "tight", "message": "Tight but manageable with efficient transfer"}
    if layover_minutes < 180:
        return {"score": 9, "rating": "comfortable", "message": "Comfortable layover with time for meals"}
    if layover_minutes < 300:
        return {"score": 7, "rating": "long", "message": "Long but acceptable layover"}
    return {"score": 4, "rating": "excessive", "message": "Very long wait, consider alternatives"}


def value_score(
    price: float,
    duration_minutes: float,
    is_direct: bool,
    num_layovers: int = 0,
) -> dict:
    """
    Value-for-money score, 0-100 (higher = better).

    Price scores 100 at 100 or less and 0 at 500+; time scores 100 at 3h or
    less and 0 at 10h+. Direct flights get +20, each layover costs 5.
    """
    price_score = max(0.0, min(100.0, (500 - price) / 4))
    time_score = max(0.0, min(100.0, (600 - duration_minutes) / 5))

    direct_bonus = 20 if is_direct else 0
    layover_penalty = num_layovers * 5

    score = price_score * 0.5 + time_score * 0.3 + direct_bonus - layover_penalty

    return {
        "score": round(max(0.0, min(100.0, score))),
        "breakdown": {
            "price_score": round(price_score),
            "time_score": round(time_score),
            "direct_bonus": direct_bonus,
            "layover_penalty": layover_penalty,
        },
    }


def flight_value_score(flight: FlightRecord) -> int:
    layovers = flight.layovers or []
    return value_score(
        price=flight.price,
        duration_minutes=flight.total_duration_in_seconds / 60,
        is_direct=not layovers,
        num_layovers=len(layovers),
    )["score"]


def compare_flights(flight1: dict, flight2: dict, priority: str = "price") -> dict:
    """Pick the better of two options ({label, price, duration_minutes, is_direct})."""
    price_diff = flight1["price"] - flight2["price"]
    time_diff = flight1["duration_minutes"] - flight2["duration_minutes"]

    hours_saved = abs(time_diff) / 60
    cost_per_hour_saved = abs(price_diff) / hours_saved if hours_saved > 0 else 0

    if priority == "price":
        winner = flight1["label"] if price_diff < 0 else flight2["label"]
        reasoning = f"{winner} is €{abs(price_diff):g} cheaper"
    elif priority == "duration":
        winner = flight1["label"] if time_diff < 0 else flight2["label"]
        reasoning = f"{winner} is {round(abs(time_diff) / 60, 1)}h faster"
    elif flight1["is_direct"] != flight2["is_direct"]:
        # convenience: direct first, then shorter
        winner = flight1["label"] if flight1["is_direct"] else flight2["label"]
        reasoning = f"{winner} is a direct flight"
    else:
        winner = flight1["label"] if time_diff < 0 else flight2["label"]
        reasoning = f"{winner} has a shorter journey"

    return {
        "winner": winner,
        "reasoning": reasoning,
        "price_difference": price_diff,
        "time_difference_minutes": time_diff,
        "cost_per_hour_saved": round(cost_per_hour_saved),
    }
