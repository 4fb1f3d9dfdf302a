from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "postgresql://postgres:postgres@db:5432/linecoach"
    anthropic_api_key: str = ""  # Empty means coaching uses fallback messages only
    redis_url: str = "redis://redis:6379/0"

    coaching_model: str = "claude-haiku-4-5-20251001"
    coaching_max_tokens: int = 300
    coaching_temperature: float = 0.8

    # Anthropic API timeout settings (seconds)
    anthropic_timeout: int = 30
    anthropic_connect_timeout: int = 10

    # LINE Messaging API
    line_channel_access_token: str = ""
    line_api_base: str = "https://api.line.me/v2"
    line_timeout: int = 15

    # LIFF deep links used by card buttons
    liff_url: str = "https://liff.line.me/linecoach"
    liff_weight_url: str = "https://liff.line.me/linecoach/weight"

    # Scheduler shared secret (empty disables the check)
    cron_secret: str = ""

    # Coaching schedule
    coaching_timezone: str = "Asia/Bangkok"
    coaching_send_delay_ms: int = 100  # Pause between pushes in one run
    coaching_card_delay_ms: int = 500  # Pause between cards to the same member
    coaching_match_send_times: bool = True
    send_time_tolerance_minutes: int = 30
    post_exercise_window_minutes: int = 60

    # Defaults for members without personal targets
    default_member_name: str = "there"
    default_daily_calories: int = 2000
    default_daily_protein: int = 100
    default_daily_carbs: int = 250
    default_daily_fat: int = 65
    default_daily_water: int = 8

    class Config:
        env_file = ".env"


settings = Settings()
