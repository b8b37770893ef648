"""Configuration package."""

from .settings import (
    ContextManagementSettings,
    ModelRate,
    ModelSettings,
    ObservabilitySettings,
    PricingSettings,
    RuntimeSettings,
    Settings,
    get_settings,
)

__all__ = [
    "ContextManagementSettings",
    "ModelRate",
    "ModelSettings",
    "ObservabilitySettings",
    "PricingSettings",
    "RuntimeSettings",
    "Settings",
    "get_settings",
]
