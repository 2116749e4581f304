"""Exception classes raised by the vertex sampler."""


class VertexSamplerError(Exception):
    """Base class for all vertex sampler errors."""


class ConfigurationError(VertexSamplerError, ValueError):
    """Invalid static configuration: unknown technique, bad parameter,
    degenerate cell catalog or seed.

    Raised while configuring, never while sampling.
    """


class NotConfiguredError(VertexSamplerError, RuntimeError):
    """A sampling call was made before any successful configuration."""


class SamplingError(VertexSamplerError, RuntimeError):
    """Box-mode rejection sampling hit its attempt cap."""
