# gdp_growth_forecaster/parsing_utils.py

from typing import Optional, List
import logging

logger = logging.getLogger(__name__)


def parse_countries(country_string: Optional[str]) -> List[str]:
    """
    Parse a comma-separated string of country codes into a list.

    An empty or missing string means "all countries in the input".

    Examples
    --------
    >>> parse_countries("US,EU,CN")
    ['US', 'EU', 'CN']
    >>> parse_countries(" US , EU27_2020 , CN ")
    ['US', 'EU27_2020', 'CN']
    >>> parse_countries(None)
    []
    """
    if not country_string:
        return []
    seen = []
    for c in country_string.split(","):
        c = c.strip()
        if c and c not in seen:
            seen.append(c)
    return seen


def validate_log_level(log_level: str) -> str:
    """
    Validate and normalize logging level specification.

    Parameters
    ----------
    log_level : str
        Logging level to validate

    Returns
    -------
    str
        Validated logging level

    Raises
    ------
    ValueError
        If the logging level is not supported
    """
    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    level_upper = log_level.upper()
    if level_upper not in valid_levels:
        raise ValueError(f"Invalid log level '{log_level}'. Must be one of: {valid_levels}")
    return level_upper
