"""Exception hierarchy for flappy-es."""


class FlappyESError(Exception):
    """Base class for every error raised by flappy-es."""


class ShapeMismatch(FlappyESError, ValueError):
    """An input vector does not match the network's input width."""


class ConfigurationError(FlappyESError, ValueError):
    """Invalid population, network or environment settings."""


class DegenerateGenerationError(FlappyESError, ArithmeticError):
    """A generation's raw scores sum to zero, so blending is undefined."""
