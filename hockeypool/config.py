"""Service configuration management."""

import os
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo

from .schemas import LeagueConfig, RosterSettings, ScoringRules
from .utils import load_json

DEFAULT_CONFIG_PATH = Path(__file__).parent / 'data' / 'league_config.json'


@lru_cache(maxsize=1)
def get_config() -> LeagueConfig:
    """
    Load service configuration from data/league_config.json.

    The path can be overridden with the ``HOCKEYPOOL_CONFIG`` environment
    variable. Configuration is cached after first load.

    Returns:
        LeagueConfig object with validated settings

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the config file has invalid structure

    Example:
        from hockeypool.config import get_config
        config = get_config()
        print(f"Stats API: {config.stats_api_base_url}")
    """
    config_path = Path(os.environ.get('HOCKEYPOOL_CONFIG') or DEFAULT_CONFIG_PATH)
    return load_json(config_path, schema=LeagueConfig)


def get_timezone() -> ZoneInfo:
    """Reference timezone for game dates and the swap cutover."""
    return ZoneInfo(get_config().timezone)


def get_default_scoring_rules() -> ScoringRules:
    """Get a fresh copy of the default scoring weights."""
    return get_config().default_scoring_rules.model_copy()


def get_default_roster_settings() -> RosterSettings:
    """Get a fresh copy of the default roster capacity."""
    return get_config().default_roster_settings.model_copy()


def get_stats_api_base_url() -> str:
    """Base URL of the external stats source (``NHL_API_BASE_URL`` wins)."""
    return os.environ.get('NHL_API_BASE_URL') or get_config().stats_api_base_url


def get_swap_cutover() -> tuple[int, int]:
    """Get the weekly swap cutover as (weekday, hour), Monday == 0."""
    config = get_config()
    return config.swap_cutover_weekday, config.swap_cutover_hour


def clear_config_cache() -> None:
    """
    Clear the configuration cache.

    Use this if the config file or ``HOCKEYPOOL_CONFIG`` changes at runtime.
    """
    get_config.cache_clear()
