from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Logging
    outage_log_level: str = "info"

    # Spreadsheet input
    outage_sheet_index: int = 1  # 1-based, like the worksheet tabs
    outage_header_rows: int = 1

    # Trap detail extraction (regexes with named groups "ip" and "duration")
    outage_member_pattern: str = r"member /Common/(?P<ip>[^\s:]+):(?P<port>\d+)"
    outage_duration_pattern: str = r" for (?P<duration>.*?) \]"

    # Report rendering
    outage_timestamp_format: str = "%Y-%m-%d %H:%M:%S"
    outage_open_bound_marker: str = "-"  # rendered instead of the sentinel timestamps

    model_config = {"env_prefix": "", "case_sensitive": False, "env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
