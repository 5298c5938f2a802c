"""Goal id normalization.

Goals created remotely carry SERIAL integer ids; goals created in fallback
mode carry millisecond timestamps. Clients send either form as int or string,
so every lookup goes through `parse_goal_id`.
"""

GoalId = int


def parse_goal_id(value) -> GoalId | None:
    """
    Normalize a client-supplied id. Returns None for anything that is not a
    positive whole number.
    Example: parse_goal_id(" 42 ") -> 42, parse_goal_id("abc") -> None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        return int(value) if value > 0 else None
    if isinstance(value, str):
        s = value.strip()
        if not s.isdigit():
            return None
        parsed = int(s)
        return parsed if parsed > 0 else None
    return None


def same_id(a, b) -> bool:
    na = parse_goal_id(a)
    return na is not None and na == parse_goal_id(b)
