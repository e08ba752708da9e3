"""Exceptions raised while configuring or running a render."""


class ConfigurationError(ValueError):
    """A render configuration is incomplete or holds an invalid value."""


class UnsupportedFractalError(ConfigurationError):
    """The selected fractal kind has no escape-time evaluator."""


class RenderCancelled(RuntimeError):
    """A render was stopped through its cancellation event."""
