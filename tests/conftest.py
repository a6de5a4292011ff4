"""Pytest configuration for the pegweave test suite.

Hypothesis profiles:
- dev: local development, 200 examples
- ci: CI runs, 50 examples, derandomized

Profile selection: HYPOTHESIS_PROFILE env var, then CI=true -> "ci",
otherwise "dev".
"""

import os

from hypothesis import Phase, settings

settings.register_profile(
    "dev",
    max_examples=200,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    derandomize=False,
)

settings.register_profile(
    "ci",
    max_examples=50,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    derandomize=True,
    print_blob=True,
)


def _detect_profile() -> str:
    """Pick the Hypothesis profile for the current environment."""
    explicit = os.environ.get("HYPOTHESIS_PROFILE")
    if explicit in ("dev", "ci"):
        return explicit
    if os.environ.get("CI") == "true":
        return "ci"
    return "dev"


settings.load_profile(_detect_profile())
