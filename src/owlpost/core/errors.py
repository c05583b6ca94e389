"""Application-level exception types for Owlpost."""


class OwlpostError(Exception):
    """Base exception for Owlpost."""


class ConfigurationError(OwlpostError):
    """Raised when settings are missing or inconsistent."""


class LLMUnavailableError(OwlpostError):
    """Raised when the completion endpoint cannot produce a reply."""


class FeatureUnavailableError(OwlpostError):
    """Raised by a backend that has not been wired to a real provider."""


class RegistryFrozenError(OwlpostError):
    """Raised when a handler is registered after startup has finished."""
