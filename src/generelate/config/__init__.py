from .loader import load_config, load_config_with_overrides
from .schema import (
    PLOT_PALETTES,
    PLOT_TYPES,
    AppConfig,
    ClusteringSettings,
    EnrichmentSettings,
    PlotSettings,
)

__all__ = [
    "load_config",
    "load_config_with_overrides",
    "AppConfig",
    "EnrichmentSettings",
    "ClusteringSettings",
    "PlotSettings",
    "PLOT_PALETTES",
    "PLOT_TYPES",
]
