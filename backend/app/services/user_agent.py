"""
Randomized browser User-Agent generation for outbound upstream requests.

Each call yields a Chrome-on-Windows identity with a random build/patch
number so that repeated lookups do not share one fingerprint.
"""
import random
from typing import Optional

CHROME_MAJOR = 136
MIN_BUILD = 6033
MAX_BUILD = 7103
MAX_PATCH = 99

USER_AGENT_TEMPLATE = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/{major}.0.{build}.{patch} Safari/537.36"
)


def generate_user_agent(rng: Optional[random.Random] = None) -> str:
    """
    Generate a browser User-Agent string.

    Args:
        rng: Optional random source; pass a seeded ``random.Random`` for
            reproducible output.

    Returns:
        User-Agent string with build in [MIN_BUILD, MAX_BUILD] and
        patch in [0, MAX_PATCH]
    """
    rng = rng or random
    build = rng.randint(MIN_BUILD, MAX_BUILD)
    patch = rng.randint(0, MAX_PATCH)
    return USER_AGENT_TEMPLATE.format(major=CHROME_MAJOR, build=build, patch=patch)
