MIN_LEVEL = 1
MAX_LEVEL = 5


def compute_ratio(view_count: int, subscriber_count: int) -> float:
    # Hidden subscriber counts come through as 0.
    if subscriber_count <= 0:
        return 0.0
    return view_count / subscriber_count


def level_of(ratio: float) -> int:
    if ratio > 5:
        return 5
    if ratio > 2:
        return 4
    if ratio >= 1:
        return 3
    if ratio >= 0.5:
        return 2
    return 1
