import math


def progress_percentage(total_progress, target_value) -> int:
    """
    Whole-number completion percentage, rounding halves up.
    A non-positive target yields 0 instead of dividing by zero.
    Example: progress_percentage(1, 3) -> 33, progress_percentage(5, 0) -> 0
    """
    total = total_progress or 0
    target = target_value or 0
    if target <= 0:
        return 0
    return int(math.floor(total / target * 100 + 0.5))


def is_completed(total_progress, target_value) -> bool:
    return progress_percentage(total_progress, target_value) >= 100
