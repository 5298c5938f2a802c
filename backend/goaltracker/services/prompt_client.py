"""Client for the hosted prompt execution service.

Two routes: one registers a named prompt template with its input variable
names, the other applies a registered prompt to input data and returns the
model output as `pretty_text` or `json`.
"""
import logging

import httpx

from goaltracker.core.result import Result
from goaltracker.persistence.remote import remote_headers

logger = logging.getLogger(__name__)

SETUP_PATH = "/api_tools/setup_ai_prompt"
APPLY_PATH = "/api_tools/apply_prompt_to_data"

PROMPTS = {
    "contextual_goal_suggestions": (
        ["user_context", "existing_goals", "user_preferences"],
        "Based on the user's context: {user_context}, existing goals: {existing_goals}, and preferences: "
        "{user_preferences}, suggest 3 relevant goals in JSON format. Each goal should have: title, "
        "description, goal_type (daily/weekly/yearly), and reasoning. Return as a JSON array.",
    ),
    "habit_stacking_suggestions": (
        ["existing_habits", "new_goal", "user_schedule"],
        "Given existing habits: {existing_habits}, new goal: {new_goal}, and schedule: {user_schedule}, "
        'suggest 3 habit stacking combinations in the format "After I [existing habit], I will '
        '[work on new goal]". Return as plain text, one per line.',
    ),
    "micro_goal_breakdown": (
        ["yearly_goal", "timeline", "constraints"],
        "Break down this yearly goal: {yearly_goal} into 3-5 micro goals over timeline: {timeline} with "
        "constraints: {constraints}. Return JSON array with objects containing: title, description, "
        "target_date, order_index.",
    ),
    "reflection_prompts": (
        ["goal_progress", "challenges", "goal_type"],
        "Generate 3 thoughtful reflection questions based on goal progress: {goal_progress}, challenges: "
        "{challenges}, and goal type: {goal_type}. Return JSON array with objects containing: question, purpose.",
    ),
}


class PromptClient:
    def __init__(
        self,
        base_url: str,
        token: str | None,
        app_id: str | None = None,
        usage_key: str | None = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.configured = bool(token)
        self._client = httpx.Client(
            base_url=base_url,
            headers=remote_headers(token, app_id, usage_key),
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings, transport: httpx.BaseTransport | None = None) -> "PromptClient":
        return cls(
            settings.remote_api_base,
            settings.remote_api_token,
            app_id=settings.remote_app_id,
            usage_key=settings.remote_usage_key,
            timeout=settings.remote_timeout,
            transport=transport,
        )

    def _post(self, path: str, payload: dict) -> Result:
        if not self.configured:
            return Result.fail("Prompt service not configured")
        try:
            r = self._client.post(path, json=payload)
        except httpx.HTTPError as e:
            logger.warning("API call error, using fallback mode: %s", e)
            return Result.fail(str(e) or e.__class__.__name__)
        if not r.is_success:
            logger.warning("API call failed: %s - Using fallback mode", r.status_code)
            return Result.fail(f"HTTP {r.status_code}")
        try:
            return Result.ok(r.json())
        except ValueError:
            return Result.fail("Malformed response")

    def setup_prompt(self, name: str, input_variables: list[str], prompt_text: str) -> Result:
        return self._post(
            SETUP_PATH,
            {"prompt_name": name, "input_variables": input_variables, "prompt_text": prompt_text},
        )

    def apply_prompt(self, name: str, input_data: dict, return_type: str = "pretty_text") -> Result:
        r = self._post(APPLY_PATH, {"prompt_name": name, "input_data": {**input_data, "return_type": return_type}})
        if not r.success:
            return r
        body = r.value if isinstance(r.value, dict) else {}
        return Result.ok(body.get("value"))

    def initialize_prompts(self) -> Result:
        for name, (variables, text) in PROMPTS.items():
            r = self.setup_prompt(name, variables, text)
            if not r.success:
                logger.warning("Failed to set up prompt %s: %s", name, r.error)
                return r
        logger.info("AI prompts initialized successfully")
        return Result.ok()

    def close(self) -> None:
        self._client.close()
