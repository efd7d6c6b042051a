from randplace.strategies.base import BaseStrategy, register_strategy, get_strategy, list_strategies  # noqa: F401

# Import built-in strategies to trigger registration
import randplace.strategies.population  # noqa: F401
import randplace.strategies.uniform  # noqa: F401
