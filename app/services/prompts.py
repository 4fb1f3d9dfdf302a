"""
Prompt templates and fallback messages for coaching notifications.

Each notification type has one prompt template built from the shared member
block plus the facts that matter for that moment of the day. Every template
states a soft length cap so the generated text fits the LINE card.

Fallback messages are fixed strings used when AI generation is unavailable.
They only interpolate the member's name and one or two key numbers.
"""

from app.services.notification_types import MAX_LENGTH, NotificationType
from app.services.scheduling import to_local

# =============================================================================
# SYSTEM PERSONA
# =============================================================================

COACH_SYSTEM_PROMPT = """You are "Coach Good", a personal nutrition coach inside a food-tracking LINE app.

PERSONALITY:
- Friendly and personal: address the member by name
- Encouraging, but never flattering beyond what the data shows
- Direct: point out what needs to improve, politely
- Use emoji sparingly
- Short, easy-to-read messages

PRINCIPLES:
1. Base every statement on the member's real data; never invent facts
2. Give concrete, doable advice
3. Notice patterns and trends over the last days
4. Adjust your tone to the situation (celebrate, show concern, encourage)

NEVER:
- Repeat the same message day after day
- Talk about generic topics unrelated to the member's data
- Give advice that conflicts with the member's goal
- Exceed the length limit given in the request"""

GOAL_LABELS = {
    "lose": "lose weight",
    "gain": "gain weight",
    "maintain": "maintain weight",
}


# =============================================================================
# FORMATTING HELPERS
# =============================================================================


def _percent(value, target) -> int:
    if not target:
        return 0
    return round(value / target * 100)


def _signed_kg(change: float) -> str:
    return f"{'+' if change > 0 else ''}{change:.1f} kg"


def _weight_text(value) -> str:
    return f"{value} kg" if value else "not set"


def _ai_coach_text(context) -> str:
    if context.ai_coach.is_unlimited:
        return "unlimited"
    if context.ai_coach.days_remaining:
        return f"{context.ai_coach.days_remaining} days left"
    return "expired"


def _stock_lines(context) -> str:
    if not context.stock:
        return "- none"
    return "\n".join(
        f"- {item.name} ({item.calories} kcal, P:{item.protein:g}g)" for item in context.stock
    )


def _meal_names(context) -> str:
    return ", ".join(context.today.meals) or "nothing logged yet"


def _length_rule(notification_type: NotificationType) -> str:
    return f"Keep it under {MAX_LENGTH[notification_type]} characters."


def build_member_block(context) -> str:
    """Shared profile and target block included in every prompt."""
    goal = GOAL_LABELS.get(context.goal.type, GOAL_LABELS["maintain"])
    return f"""MEMBER:
- Name: {context.name}
- Goal: {goal}
- Current weight: {_weight_text(context.goal.current_weight)}
- Target weight: {_weight_text(context.goal.target_weight)}
- AI Coach: {_ai_coach_text(context)}
- Meal logging streak: {context.streak_days} days

TODAY'S TARGETS:
- Calories: {context.targets.calories} kcal
- Protein: {context.targets.protein}g
- Carbs: {context.targets.carbs}g
- Fat: {context.targets.fat}g"""


# =============================================================================
# PER-TYPE PROMPTS
# =============================================================================


def _morning_prompt(context) -> str:
    weight_line = ""
    if context.weight_change is not None:
        weight_line = f"\nWeight change over the last 7 days: {_signed_kg(context.weight_change)}\n"
    return f"""YESTERDAY:
- Calories: {context.yesterday.calories}/{context.targets.calories} kcal ({_percent(context.yesterday.calories, context.targets.calories)}%)
- Protein: {context.yesterday.protein}/{context.targets.protein}g ({_percent(context.yesterday.protein, context.targets.protein)}%)
- Meals logged: {context.yesterday.meal_count}
{weight_line}
Write a morning motivation message:
1. Greet the member by name
2. Summarize yesterday briefly (good / needs work)
3. State today's target
4. Give one specific tip
5. Encourage them"""


def _meal_status(context, label: str) -> str:
    remaining_calories = context.targets.calories - context.today.calories
    protein_gap = context.targets.protein - context.today.protein
    return f"""TODAY SO FAR (before {label}):
- Eaten: {context.today.calories} kcal ({_percent(context.today.calories, context.targets.calories)}%)
- Protein: {context.today.protein}g ({_percent(context.today.protein, context.targets.protein)}%)
- Meals: {_meal_names(context)}
- Calories remaining: {remaining_calories} kcal
- Protein still needed: {protein_gap}g

FOOD IN STOCK:
{_stock_lines(context)}"""


def _lunch_prompt(context) -> str:
    return f"""{_meal_status(context, "lunch")}

Suggest a lunch:
1. Say what is missing (calories, protein, other)
2. Recommend from stock first, if there is any
3. If stock is not enough, suggest something else
4. Explain why in one line"""


def _dinner_prompt(context) -> str:
    return f"""{_meal_status(context, "dinner")}

Suggest a dinner:
1. Look at the calories left for today
2. Recommend a suitable item from stock
3. If they are already over target, suggest something light
4. If protein is short, suggest more protein"""


def _evening_prompt(context) -> str:
    exercise_line = ""
    if context.exercise_today:
        exercise_line = (
            f"\n- Exercise: {context.exercise_today.name} "
            f"(burned {context.exercise_today.calories} kcal)"
        )
    return f"""TODAY'S SUMMARY:
- Calories: {context.today.calories}/{context.targets.calories} kcal ({_percent(context.today.calories, context.targets.calories)}%)
- Protein: {context.today.protein}/{context.targets.protein}g ({_percent(context.today.protein, context.targets.protein)}%)
- Carbs: {context.today.carbs}/{context.targets.carbs}g
- Fat: {context.today.fat}/{context.targets.fat}g
- Meals logged: {context.today.meal_count}
- Water: {context.water.current}/{context.water.target} glasses{exercise_line}

Wrap up the day:
1. Overall rating (great / okay / needs work)
2. Praise what went well
3. Point out what to improve, if anything
4. One tip for tomorrow"""


def _water_prompt(context) -> str:
    local_time = to_local(context.generated_at).strftime("%H:%M")
    return f"""HYDRATION:
- Drunk so far: {context.water.current} glasses
- Target: {context.water.target} glasses
- Remaining: {context.water.target - context.water.current} glasses
- Current time: {local_time}

Write a water reminder:
1. State where they are now
2. Give one reason to drink now
3. Encourage them"""


def _weekly_prompt(context) -> str:
    weight_line = ""
    if context.weight_change is not None:
        weight_line = f"\n- Weight change this week: {_signed_kg(context.weight_change)}"
    return f"""THIS WEEK:
- Logging streak: {context.streak_days} days
- Yesterday: {context.yesterday.calories}/{context.targets.calories} kcal, {context.yesterday.protein}/{context.targets.protein}g protein{weight_line}

Write a weekly check-in:
1. Celebrate one concrete win from the week
2. Name one pattern to work on
3. Set one small goal for next week"""


def _photo_prompt(context) -> str:
    weight_line = ""
    if context.weight_change is not None:
        weight_line = f"\nWeight change over the last 7 days: {_signed_kg(context.weight_change)}"
    return f"""PROGRESS PHOTO DAY{weight_line}

Remind the member to take this week's progress photo:
1. Explain briefly why photos show progress the scale misses
2. Tip: same spot, same light, same outfit, front and side"""


def _exercise_prompt(context) -> str:
    burned = context.exercise_today.calories if context.exercise_today else 0
    activity = context.exercise_today.name if context.exercise_today else "not specified"
    return f"""EXERCISE TODAY:
- Activity: {activity}
- Burned: {burned} kcal

CALORIES AFTER EXERCISE:
- Original target: {context.targets.calories} kcal
- Added from exercise: +{burned} kcal
- Allowed today: {context.targets.calories + burned} kcal

FOOD IN STOCK:
{_stock_lines(context)}

Suggest a recovery meal:
1. Recommend a high-protein item from stock
2. Say it is best eaten within 30-60 minutes
3. Explain the benefit briefly"""


def _milestone_prompt(context) -> str:
    weight_line = ""
    if context.weight_change is not None:
        weight_line = f"\nWeight change: {_signed_kg(context.weight_change)}"
    return f"""MILESTONE: {context.streak_days} days of meal logging in a row!{weight_line}

Write a celebration message:
1. Congratulate the member
2. Sum up what they achieved
3. Encourage them to keep going"""


def _inactive_prompt(context) -> str:
    days_line = ""
    if context.ai_coach.days_remaining:
        days_line = f"\nAI Coach days remaining: {context.ai_coach.days_remaining}"
    return f"""STATUS: has not logged any meals for several days{days_line}

Write a check-in message:
1. Show you care (no blame)
2. Mention the streak they had ({context.streak_days} days)
3. Encourage them to come back
4. Suggest snapping a photo now and logging it later"""


_PROMPT_BUILDERS = {
    NotificationType.MORNING: _morning_prompt,
    NotificationType.LUNCH: _lunch_prompt,
    NotificationType.DINNER: _dinner_prompt,
    NotificationType.EVENING: _evening_prompt,
    NotificationType.WATER: _water_prompt,
    NotificationType.WEEKLY: _weekly_prompt,
    NotificationType.PHOTO: _photo_prompt,
    NotificationType.EXERCISE: _exercise_prompt,
    NotificationType.MILESTONE: _milestone_prompt,
    NotificationType.INACTIVE: _inactive_prompt,
}


def build_prompt(notification_type: NotificationType, context) -> str:
    """Build the user prompt for one notification type."""
    body = _PROMPT_BUILDERS[notification_type](context)
    return f"{build_member_block(context)}\n\n{body}\n\n{_length_rule(notification_type)}"


# =============================================================================
# FALLBACK MESSAGES
# =============================================================================


def fallback_message(notification_type: NotificationType, context) -> str:
    """
    Deterministic message used when AI generation is unavailable or fails.

    Only reads fields that always exist on a MemberContext; optional values
    are treated as 0.
    """
    name = context.name
    remaining = context.targets.calories - context.today.calories
    days_text = ""
    if context.ai_coach.days_remaining:
        days_text = f" ({context.ai_coach.days_remaining} coaching days left)"

    if notification_type == NotificationType.MORNING:
        return f"Good morning, {name}! 🌅 Let's make today count{days_text} 💪"
    if notification_type == NotificationType.LUNCH:
        return (
            f"Lunchtime is close, {name} 🍽️ Don't forget to log your lunch. "
            f"You have {remaining} kcal left today."
        )
    if notification_type == NotificationType.DINNER:
        return f"Time for dinner, {name} 🍽️ You have {remaining} kcal left today."
    if notification_type == NotificationType.EVENING:
        return (
            f"Today's wrap-up, {name} 📊 {context.today.calories}/"
            f"{context.targets.calories} kcal. Let's keep going tomorrow!"
        )
    if notification_type == NotificationType.WATER:
        return (
            f"Remember to drink water, {name}! 💧 "
            f"You're at {context.water.current}/{context.water.target} glasses."
        )
    if notification_type == NotificationType.WEEKLY:
        return (
            f"Another week done, {name}! 💡 Your logging streak is "
            f"{context.streak_days} days. Your weekly insights are in the app."
        )
    if notification_type == NotificationType.PHOTO:
        return f"Progress photo day, {name}! 📸 Same spot, same light, same outfit."
    if notification_type == NotificationType.EXERCISE:
        burned = context.exercise_today.calories if context.exercise_today else 0
        return (
            f"Great workout, {name}! 🏃 You burned {burned} kcal. "
            f"Remember to refuel with protein."
        )
    if notification_type == NotificationType.MILESTONE:
        return (
            f"Congratulations, {name}! 🎉 {context.streak_days} days of logging "
            f"in a row. Keep it up 💪"
        )
    if notification_type == NotificationType.INACTIVE:
        return f"We miss you, {name}! 😊 Snap your next meal and log it when you can."
    return f"Keep going, {name}! 💪"


# =============================================================================
# WEEKLY INSIGHTS
# =============================================================================


def build_weekly_insights(context, stats, week_number: int) -> str:
    """Deterministic weekly summary card text."""
    lines = [
        f"📊 Week {week_number} summary",
        "",
        "📈 Daily average:",
        f"• Calories: {stats.avg_calories} kcal",
        f"• Protein: {stats.avg_protein}g",
    ]
    if stats.days_over_calories or stats.days_under_protein:
        lines.append("")
    if stats.days_over_calories:
        lines.append(f"⚠️ Over calorie target: {', '.join(stats.days_over_calories)}")
    if stats.days_under_protein:
        lines.append(f"💪 Protein below target: {', '.join(stats.days_under_protein)}")
    if context.weight_change is not None:
        lines.append("")
        lines.append(f"⚖️ Weight change: {_signed_kg(context.weight_change)}")
    return "\n".join(lines)
