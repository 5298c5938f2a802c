"""Rule-based goal suggestions, habit stacks, micro-goal plans and reflection prompts.

Selection is randomized on purpose; pass a seeded `random.Random` to get a
repeatable pick. `SuggestionService` can ask the hosted prompt service first
and falls back to these rules whenever that is disabled or fails.
"""
import json
import logging
import random
from datetime import date, datetime

from pydantic import TypeAdapter, ValidationError

from goaltracker.core.constants import SUGGESTION_COUNT
from goaltracker.core.time_utils import add_months, season_of, time_of_day
from goaltracker.schemas.suggestion import GoalSuggestion, MicroGoalSuggestion, ReflectionPromptItem

logger = logging.getLogger(__name__)


def _s(title, description, goal_type, reasoning, time_context=None, season=None):
    return {
        "title": title,
        "description": description,
        "goal_type": goal_type,
        "reasoning": reasoning,
        "time_context": time_context,
        "season": season,
    }


CONTEXTUAL_SUGGESTIONS = [
    _s("Morning Meditation", "Start your day with 10 minutes of mindfulness and deep breathing", "daily",
       "Morning routines help set a positive tone for the day and reduce stress", time_context="morning"),
    _s("Sunrise Walk", "Take a 20-minute walk outside to energize your morning", "daily",
       "Morning sunlight helps regulate circadian rhythms and boosts mood", time_context="morning"),
    _s("Healthy Breakfast Routine", "Prepare and eat a nutritious breakfast every morning", "daily",
       "A good breakfast provides energy and nutrients for the day ahead", time_context="morning"),
    _s("Midday Movement Break", "Take a 15-minute movement break during your workday", "daily",
       "Regular movement breaks improve focus and reduce physical strain", time_context="afternoon"),
    _s("Lunch Hour Learning", "Spend 30 minutes learning something new during lunch", "daily",
       "Continuous learning keeps your mind sharp and opens opportunities", time_context="afternoon"),
    _s("Evening Gratitude Journal", "Write down 3 things you're grateful for each evening", "daily",
       "Gratitude practice improves mental well-being and life satisfaction", time_context="evening"),
    _s("Digital Sunset", "Put away all screens 1 hour before bedtime", "daily",
       "Reducing blue light exposure improves sleep quality", time_context="evening"),
    _s("Weekly Nature Adventure", "Spend at least 2 hours in nature each week", "weekly",
       "Time in nature reduces stress and improves mental health"),
    _s("Social Connection Time", "Have a meaningful conversation with a friend or family member", "weekly",
       "Strong social connections are essential for happiness and longevity"),
    _s("Creative Expression", "Dedicate time to a creative hobby or artistic pursuit", "weekly",
       "Creative activities reduce stress and provide a sense of accomplishment"),
    _s("Learn a New Language", "Achieve conversational level in a language you've always wanted to learn", "yearly",
       "Language learning improves cognitive function and opens cultural doors"),
    _s("Complete a Fitness Challenge", "Train for and complete a marathon, triathlon, or fitness milestone", "yearly",
       "Long-term fitness goals provide motivation and improve overall health"),
    _s("Master a New Skill", "Become proficient in a skill that interests you or advances your career", "yearly",
       "Skill development keeps you competitive and provides personal satisfaction"),
    _s("Spring Garden Project", "Start and maintain a small garden or herb collection", "yearly",
       "Gardening connects you with nature and provides fresh, healthy food", season="spring"),
    _s("Summer Outdoor Adventures", "Try 5 new outdoor activities this summer", "yearly",
       "Summer is perfect for exploring new outdoor experiences", season="summer"),
    _s("Fall Learning Project", "Take an online course or workshop in something that interests you", "yearly",
       "Fall is traditionally a time for learning and personal growth", season="fall"),
    _s("Winter Wellness Focus", "Develop a consistent self-care routine for the winter months", "yearly",
       "Winter wellness routines help combat seasonal mood changes", season="winter"),
]

HISTORY_SUGGESTIONS = [
    _s("Improve Sleep Schedule", "Go to bed and wake up at consistent times every day", "daily",
       "Good sleep is the foundation of all other healthy habits"),
    _s("Weekly Meal Prep", "Prepare healthy meals for the week every Sunday", "weekly",
       "Meal prep saves time and helps maintain healthy eating habits"),
    _s("Monthly Budget Review", "Review and optimize your budget every month", "weekly",
       "Regular financial check-ins help you stay on track with money goals"),
    _s("Daily Reading Habit", "Read for at least 20 minutes every day", "daily",
       "Reading expands knowledge and improves focus and vocabulary"),
    _s("Exercise Consistency", "Work out at least 3 times per week", "weekly",
       "Regular exercise improves physical and mental health"),
    _s("Learn a Professional Skill", "Develop a skill that will advance your career this year", "yearly",
       "Professional development opens new opportunities and increases earning potential"),
]

MENTOR_SUGGESTION = _s(
    "Mentor Someone", "Share your knowledge by mentoring someone in your field", "yearly",
    "Based on your success with goals, you could help others achieve theirs",
)

MINDFULNESS_SUGGESTION = _s(
    "Daily Mindfulness Check-in", "Take 5 minutes each day to check in with yourself", "daily",
    "With many active goals, mindfulness can help you stay focused and balanced",
)

# (title keywords, habit stacks); first match wins
HABIT_STACKS = [
    (("exercise", "workout", "fitness"), [
        "After I brush my teeth in the morning, I will do 10 push-ups",
        "After I finish my morning coffee, I will do a 5-minute stretch routine",
        "After I get home from work, I will change into workout clothes immediately",
    ]),
    (("read", "book", "learn"), [
        "After I eat breakfast, I will read for 15 minutes",
        "After I finish work, I will read instead of checking social media",
        "After I get into bed, I will read for 10 minutes before sleep",
    ]),
    (("health", "meditat", "mindful"), [
        "After I wake up, I will drink a glass of water",
        "After I sit down at my desk, I will take 3 deep breaths",
        "After I finish lunch, I will take a 5-minute walk",
    ]),
    (("work", "productiv", "focus"), [
        "After I start my computer, I will review my daily priorities",
        "After I finish a task, I will take a 2-minute break",
        "After I eat lunch, I will organize my workspace",
    ]),
    (("creat", "write", "art"), [
        "After I finish dinner, I will spend 20 minutes on my creative project",
        "After I drink my morning coffee, I will write in my journal",
        "After I complete my work tasks, I will work on my creative goal",
    ]),
]

GENERIC_HABIT_STACKS = [
    "After I check my phone in the morning, I will work on my goal for 10 minutes",
    "After I eat lunch, I will spend 15 minutes on my goal",
    "After I finish work, I will dedicate 20 minutes to my goal",
]

UNIVERSAL_HABIT_STACKS = [
    "After I brush my teeth, I will review my goal progress",
    "After I drink my morning coffee, I will work on my goal",
    "After I finish dinner, I will spend time on personal development",
    "After I get ready for bed, I will reflect on my goal progress",
]

# (title keywords, [(title, description, months from today)])
MICRO_GOAL_PLANS = [
    (("fitness", "exercise", "marathon", "weight"), [
        ("Establish Exercise Routine", "Create a consistent workout schedule and stick to it for 30 days", 1),
        ("Build Endurance Base", "Focus on building cardiovascular endurance and basic strength", 3),
        ("Increase Intensity", "Add more challenging workouts and longer training sessions", 6),
        ("Peak Performance Phase", "Reach your highest fitness level and maintain it", 9),
        ("Achieve Final Goal", "Complete your fitness milestone and celebrate your achievement", 12),
    ]),
    (("learn", "language", "skill", "course"), [
        ("Research and Plan", "Research learning resources and create a structured learning plan", 1),
        ("Master the Basics", "Learn and practice fundamental concepts and skills", 3),
        ("Intermediate Proficiency", "Develop intermediate-level skills and start practical application", 6),
        ("Advanced Application", "Apply your skills in real-world scenarios and complex projects", 9),
        ("Mastery and Teaching", "Achieve proficiency and share your knowledge with others", 12),
    ]),
    (("career", "job", "promotion", "business"), [
        ("Assess Current Position", "Evaluate your current skills, experience, and career trajectory", 1),
        ("Develop Key Skills", "Identify and develop the skills needed for your career goal", 4),
        ("Build Network", "Connect with professionals in your field and expand your network", 6),
        ("Gain Experience", "Take on projects or roles that provide relevant experience", 9),
        ("Achieve Career Milestone", "Reach your career goal and plan for continued growth", 12),
    ]),
    (("save", "money", "financial", "budget"), [
        ("Create Financial Plan", "Assess your current finances and create a detailed savings plan", 1),
        ("Optimize Expenses", "Review and reduce unnecessary expenses to increase savings", 2),
        ("Increase Income", "Explore ways to increase your income through side hustles or career advancement", 4),
        ("Build Emergency Fund", "Establish a solid emergency fund before focusing on other financial goals", 6),
        ("Reach Savings Target", "Achieve your financial goal and plan for future investments", 12),
    ]),
]

GENERIC_MICRO_GOAL_PLAN = [
    ("Define Specific Objectives", "Break down your yearly goal into specific, measurable objectives", 1),
    ("Create Action Plan", "Develop a detailed plan with timelines and milestones", 2),
    ("Build Momentum", "Start implementation and build consistent daily habits", 4),
    ("Overcome Challenges", "Address obstacles and adjust your approach as needed", 8),
    ("Achieve Your Goal", "Complete your yearly goal and celebrate your success", 12),
]

REFLECTION_PROMPTS = [
    ("What's one thing you learned about yourself while working on your goals this week?",
     "Self-awareness and personal growth"),
    ("Which goal brought you the most satisfaction when you made progress on it?",
     "Identifying motivation sources"),
    ("What obstacle did you overcome recently, and how did you do it?", "Building resilience strategies"),
    ("How has working on your goals changed your daily routine?", "Recognizing positive changes"),
    ("What would you tell someone who's struggling with the same goal you're working on?",
     "Consolidating lessons learned"),
    ("When you think about your progress, what are you most proud of?", "Celebrating achievements"),
    ("What's one small change you could make to improve your goal progress?", "Continuous improvement"),
    ("How do you feel when you complete a task related to your goals?", "Understanding emotional rewards"),
    ("What support or resources have been most helpful in your goal journey?", "Identifying success factors"),
    ("If you could go back and give yourself advice when you started this goal, what would it be?",
     "Reflecting on growth and learning"),
]

DEFAULT_REFLECTION_QUESTION = "How do you feel about your progress today?"


def _public(suggestion: dict) -> dict:
    return {k: suggestion[k] for k in ("title", "description", "goal_type", "reasoning")}


def build_context(now: datetime | None = None) -> dict:
    now = now or datetime.now()
    return {
        "time_of_day": time_of_day(now),
        "season": season_of(now.date()),
        "day_of_week": now.strftime("%A"),
    }


def contextual_suggestions(context: dict | None = None, rng: random.Random | None = None) -> list[dict]:
    """Three suggestions that fit the time of day and season."""
    rng = rng or random.Random()
    context = context or {}
    tod = context.get("time_of_day") or "morning"
    season = context.get("season")

    candidates = CONTEXTUAL_SUGGESTIONS
    if tod != "morning":
        # Daily habits tied to another part of the day drop out
        candidates = [
            s for s in candidates
            if not s["time_context"] or s["time_context"] == tod or s["goal_type"] != "daily"
        ]
    if season:
        candidates = [s for s in candidates if not s["season"] or s["season"] == season]

    return [_public(s) for s in rng.sample(candidates, SUGGESTION_COUNT)]


def history_suggestions(goals: list[dict], preferred_type: str | None = "daily") -> list[dict]:
    """Three suggestions shaped by how many goals the user has finished or is juggling."""
    completed = sum(1 for g in goals if g.get("status") == "completed")
    current = sum(1 for g in goals if g.get("status") == "active")

    suggestions = list(HISTORY_SUGGESTIONS)
    if completed > 5:
        suggestions.append(MENTOR_SUGGESTION)
    if current > 3:
        suggestions.insert(0, MINDFULNESS_SUGGESTION)

    picked = suggestions
    if preferred_type and preferred_type != "mixed":
        picked = [s for s in suggestions if s["goal_type"] == preferred_type]
        if len(picked) < 2:
            picked = suggestions[:SUGGESTION_COUNT]

    picked = picked[:SUGGESTION_COUNT]
    for s in suggestions:
        if len(picked) >= SUGGESTION_COUNT:
            break
        if s not in picked:
            picked.append(s)
    return [_public(s) for s in picked]


def most_common_goal_type(goals: list[dict]) -> str:
    counts = {}
    for g in goals:
        counts[g.get("goal_type")] = counts.get(g.get("goal_type"), 0) + 1
    counts.pop(None, None)
    if not counts:
        return "daily"
    return max(counts, key=counts.get)


def habit_stacking_suggestions(goal_title: str | None) -> list[str]:
    title = (goal_title or "").lower()
    stacks = next((list(s) for keywords, s in HABIT_STACKS if any(k in title for k in keywords)), None)
    if stacks is None:
        stacks = list(GENERIC_HABIT_STACKS)
    for extra in UNIVERSAL_HABIT_STACKS:
        if len(stacks) >= SUGGESTION_COUNT:
            break
        if extra not in stacks:
            stacks.append(extra)
    return stacks[:SUGGESTION_COUNT]


def micro_goal_breakdown(goal_title: str | None, today: date | None = None) -> list[dict]:
    """A five-step plan spread over the next twelve months."""
    title = (goal_title or "").lower()
    today = today or date.today()
    plan = next((p for keywords, p in MICRO_GOAL_PLANS if any(k in title for k in keywords)),
                GENERIC_MICRO_GOAL_PLAN)
    return [
        {
            "title": step_title,
            "description": description,
            "target_date": add_months(today, months).isoformat(),
            "order_index": index,
        }
        for index, (step_title, description, months) in enumerate(plan)
    ]


def reflection_prompts(rng: random.Random | None = None) -> list[dict]:
    rng = rng or random.Random()
    return [
        {"question": q, "purpose": p}
        for q, p in rng.sample(REFLECTION_PROMPTS, SUGGESTION_COUNT)
    ]


_goal_suggestions = TypeAdapter(list[GoalSuggestion])
_micro_goals = TypeAdapter(list[MicroGoalSuggestion])
_reflections = TypeAdapter(list[ReflectionPromptItem])


class SuggestionService:
    def __init__(self, prompt_client=None, use_remote: bool = False, rng: random.Random | None = None):
        self.prompt_client = prompt_client
        self.use_remote = bool(use_remote and prompt_client is not None)
        self.rng = rng or random.Random()

    def initialize(self) -> None:
        if self.use_remote:
            self.prompt_client.initialize_prompts()

    def _remote(self, name: str, data: dict, return_type: str, adapter: TypeAdapter | None = None):
        """Remote answer validated against `adapter`, or None to use the local rules."""
        if not self.use_remote:
            return None
        r = self.prompt_client.apply_prompt(name, data, return_type)
        if not r.success or r.value is None:
            return None
        if adapter is None:
            return r.value
        value = r.value
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                logger.warning("Prompt %s returned non-JSON output, using fallback", name)
                return None
        try:
            return [item.model_dump(mode="json") for item in adapter.validate_python(value)]
        except ValidationError as e:
            logger.warning("Prompt %s returned unexpected output, using fallback: %s", name, e)
            return None

    def contextual(self, context: dict, existing_goals: list[dict]) -> list[dict]:
        remote = self._remote(
            "contextual_goal_suggestions",
            {
                "user_context": json.dumps(context),
                "existing_goals": json.dumps([g.get("title") for g in existing_goals[:5]]),
                "user_preferences": json.dumps({}),
            },
            "json",
            _goal_suggestions,
        )
        if remote and len(remote) >= SUGGESTION_COUNT:
            return remote[:SUGGESTION_COUNT]
        return contextual_suggestions(context, self.rng)

    def history(self, goals: list[dict], preferred_type: str | None = None) -> list[dict]:
        return history_suggestions(goals, preferred_type or most_common_goal_type(goals))

    def habit_stacking(self, goal_title: str, existing_habits: list[str] | None = None) -> list[str]:
        remote = self._remote(
            "habit_stacking_suggestions",
            {
                "existing_habits": json.dumps(existing_habits or []),
                "new_goal": goal_title,
                "user_schedule": "",
            },
            "pretty_text",
        )
        if isinstance(remote, str):
            lines = [line.strip(" -*\t") for line in remote.splitlines() if line.strip()]
            if len(lines) >= SUGGESTION_COUNT:
                return lines[:SUGGESTION_COUNT]
        return habit_stacking_suggestions(goal_title)

    def micro_goals(self, goal: dict) -> list[dict]:
        remote = self._remote(
            "micro_goal_breakdown",
            {"yearly_goal": json.dumps({"title": goal.get("title")}), "timeline": "12 months", "constraints": ""},
            "json",
            _micro_goals,
        )
        if remote:
            return remote
        return micro_goal_breakdown(goal.get("title"))

    def reflections(self, goal: dict | None = None) -> list[dict]:
        remote = self._remote(
            "reflection_prompts",
            {
                "goal_progress": json.dumps(goal.get("total_progress") if goal else None),
                "challenges": "",
                "goal_type": (goal or {}).get("goal_type") or "",
            },
            "json",
            _reflections,
        )
        if remote and len(remote) >= SUGGESTION_COUNT:
            return remote[:SUGGESTION_COUNT]
        return reflection_prompts(self.rng)
