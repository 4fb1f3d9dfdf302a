"""
Unit tests for MessageComposer and the prompt/fallback templates.

Uses hand-built MemberContext snapshots so no database is needed.
"""
import pytest

from app.services.context_service import (
    ExerciseSummary,
    GoalInfo,
    NutritionTotals,
    Targets,
    WeeklyStats,
)
from app.services.message_service import MessageComposer
from app.services.notification_types import MAX_LENGTH, NotificationType
from app.services.prompts import (
    COACH_SYSTEM_PROMPT,
    build_prompt,
    build_weekly_insights,
    fallback_message,
)
from tests.factories import make_member_context
from tests.fixtures.mocks import MockClaudeService


class TestFallbackComposition:
    """Composition without a completion provider."""

    @pytest.mark.asyncio
    async def test_lunch_fallback_has_name_and_remaining_calories(self):
        composer = MessageComposer(provider=None)

        message = await composer.compose(NotificationType.LUNCH, make_member_context())

        assert "Alice" in message
        assert "800" in message
        assert "Grilled Chicken Salad" not in message

    @pytest.mark.asyncio
    @pytest.mark.parametrize("notification_type", list(NotificationType))
    async def test_every_type_has_nonempty_fallback(self, notification_type):
        composer = MessageComposer(provider=None)

        message = await composer.compose(notification_type, make_member_context())

        assert message.strip()

    @pytest.mark.parametrize("notification_type", list(NotificationType))
    def test_fallback_tolerates_sparse_context(self, notification_type):
        context = make_member_context(
            today=NutritionTotals(),
            yesterday=NutritionTotals(),
            stock=(),
            weight_change=None,
            exercise_today=None,
            streak_days=0,
            goal=GoalInfo(type="maintain", current_weight=None, target_weight=None),
        )

        assert fallback_message(notification_type, context).strip()

    def test_milestone_fallback_uses_streak(self):
        message = fallback_message(NotificationType.MILESTONE, make_member_context(streak_days=14))

        assert "14 days" in message

    def test_exercise_fallback_uses_burned_calories(self):
        context = make_member_context(exercise_today=ExerciseSummary(name="Running", calories=320))

        assert "320" in fallback_message(NotificationType.EXERCISE, context)


class TestProviderComposition:
    """Composition with a (mock) completion provider."""

    @pytest.mark.asyncio
    async def test_uses_generated_text(self):
        provider = MockClaudeService()
        provider.set_response("  Try the chicken salad for lunch, Alice!  ")
        composer = MessageComposer(provider=provider)

        message = await composer.compose(NotificationType.LUNCH, make_member_context())

        assert message == "Try the chicken salad for lunch, Alice!"
        call = provider.calls["complete"][0]["kwargs"]
        assert call["system"] == COACH_SYSTEM_PROMPT
        assert "Grilled Chicken Salad" in call["prompt"]

    @pytest.mark.asyncio
    async def test_failure_result_falls_back(self):
        provider = MockClaudeService()
        provider.set_failure("rate_limited")
        composer = MessageComposer(provider=provider)
        context = make_member_context()

        message = await composer.compose(NotificationType.LUNCH, context)

        assert message == fallback_message(NotificationType.LUNCH, context)

    @pytest.mark.asyncio
    async def test_blank_result_falls_back(self):
        provider = MockClaudeService()
        provider.set_response("   ")
        composer = MessageComposer(provider=provider)
        context = make_member_context()

        message = await composer.compose(NotificationType.MORNING, context)

        assert message == fallback_message(NotificationType.MORNING, context)

    @pytest.mark.asyncio
    async def test_raising_provider_falls_back(self):
        provider = MockClaudeService()
        provider.set_error(RuntimeError("provider blew up"))
        composer = MessageComposer(provider=provider)
        context = make_member_context()

        message = await composer.compose(NotificationType.LUNCH, context)

        assert message == fallback_message(NotificationType.LUNCH, context)
        assert len(provider.calls["complete"]) == 1

    def test_from_settings_without_key_has_no_provider(self):
        assert MessageComposer.from_settings().provider is None


class TestPrompts:
    @pytest.mark.parametrize("notification_type", list(NotificationType))
    def test_prompt_states_length_cap(self, notification_type):
        prompt = build_prompt(notification_type, make_member_context())

        assert f"Keep it under {MAX_LENGTH[notification_type]} characters." in prompt
        assert "Alice" in prompt

    def test_prompt_with_zero_targets(self):
        context = make_member_context(targets=Targets(calories=0, protein=0, carbs=0, fat=0))

        assert build_prompt(NotificationType.EVENING, context)


class TestWeeklyInsights:
    def test_summary_lists_flagged_days(self):
        stats = WeeklyStats(
            avg_calories=1850,
            avg_protein=72,
            meal_count=18,
            days_over_calories=("Monday", "Saturday"),
            days_under_protein=("Friday",),
        )

        text = build_weekly_insights(make_member_context(), stats, week_number=2)

        assert text.startswith("📊 Week 2 summary")
        assert "1850 kcal" in text
        assert "Monday, Saturday" in text
        assert "Friday" in text
        assert "-0.6 kg" in text

    def test_composer_delegates_weekly_insights(self):
        stats = WeeklyStats(1500, 80, 10, (), ())

        text = MessageComposer(None).compose_weekly_insights(make_member_context(weight_change=None), stats, 3)

        assert "Week 3" in text
        assert "Weight change" not in text
