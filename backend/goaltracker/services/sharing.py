"""Share text, platform share links and accountability-partner invite links."""
import base64
import json
from urllib.parse import urlencode

from goaltracker.core.progress import progress_percentage
from goaltracker.core.time_utils import timestamp_id

# platform -> (share endpoint, query builder); a None endpoint means the
# client copies the text instead of opening a link.
PLATFORMS = {
    "facebook": ("https://www.facebook.com/sharer/sharer.php", lambda url, text: {"u": url, "quote": text}),
    "twitter": ("https://twitter.com/intent/tweet", lambda url, text: {"url": url, "text": text}),
    "linkedin": ("https://www.linkedin.com/sharing/share-offsite/", lambda url, text: {"url": url, "summary": text}),
    "instagram": (None, None),
}

SHARE_TEMPLATES = {
    "daily": '🎯 Daily Goal Update: "{title}" - {progress}% complete! Every day counts towards building '
             "better habits. #GoalTracker #DailyGoals #Progress",
    "weekly": '📅 Weekly Goal Progress: "{title}" - {progress}% achieved this week! Consistency is key to '
              "success. #WeeklyGoals #Progress #Achievement",
    "yearly": '🚀 Yearly Goal Journey: "{title}" - {progress}% complete! Big dreams require persistent '
              "action. #YearlyGoals #BigDreams #Progress",
}
DEFAULT_SHARE_TEMPLATE = '🎯 Goal Progress: "{title}" - {progress}% complete! #Goals #Progress #Achievement'

INVITE_PATH = "/partner-invite/"


def goal_percentage(goal: dict) -> int:
    return progress_percentage(goal.get("total_progress") or 0, goal.get("target_value") or 0)


def share_text(goal: dict, percentage: int | None = None) -> str:
    if percentage is None:
        percentage = goal_percentage(goal)
    template = SHARE_TEMPLATES.get(goal.get("goal_type"), DEFAULT_SHARE_TEMPLATE)
    return template.format(title=goal.get("title", ""), progress=percentage)


def share_url(platform: str, url: str, text: str, hashtags: list[str] | None = None) -> str | None:
    """
    Link that opens the platform's share dialog.
    Returns None for platforms without one (instagram). Raises ValueError for unknown platforms.
    """
    if platform not in PLATFORMS:
        raise ValueError(f"Unsupported platform: {platform}")
    endpoint, build = PLATFORMS[platform]
    if endpoint is None:
        return None
    params = build(url, text)
    if platform == "twitter" and hashtags:
        params["hashtags"] = ",".join(h.lstrip("#") for h in hashtags)
    return f"{endpoint}?{urlencode(params)}"


def encode_invite(payload: dict) -> str:
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_invite(token: str) -> dict:
    """Inverse of the token in an invite link. Raises ValueError on anything that isn't one."""
    try:
        padded = token + "=" * (-len(token) % 4)
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (ValueError, UnicodeError) as e:
        raise ValueError("Invalid invite token") from e
    if not isinstance(data, dict) or "userId" not in data:
        raise ValueError("Invalid invite token")
    return data


def invite_link(base_url: str, user: dict, goal_ids: list, privacy: dict) -> str:
    token = encode_invite({
        "userId": user.get("id"),
        "userName": user.get("name"),
        "goals": list(goal_ids),
        "privacy": dict(privacy),
        "timestamp": timestamp_id(),
    })
    return base_url.rstrip("/") + INVITE_PATH + token


def invite_email(user_name: str, link: str) -> tuple[str, str]:
    subject = f"{user_name} invited you to be their accountability partner"
    body = (
        "Hi!\n\n"
        f"{user_name} has invited you to be their accountability partner on GoalTracker. "
        "You'll be able to see their progress on selected goals and provide encouragement "
        "along their journey.\n\n"
        "Click here to accept the invitation:\n"
        f"{link}\n\n"
        "Let's achieve great things together!"
    )
    return subject, body
