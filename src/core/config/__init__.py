"""
Configuration subsystem for the HomeLab bot.

- **config.py**: static configuration resolved from environment variables
- **catalogue.py**: the quick-link service catalogue loaded from YAML

Usage
-----
```python
from src.core.config import Config, load_catalogue

config = Config.from_env()
catalogue = load_catalogue(config.services_file)
```
"""

from src.core.config.catalogue import CatalogueEntry, ServiceCatalogue, load_catalogue
from src.core.config.config import (
    BotConfig,
    CacheTTLs,
    Config,
    Environment,
    ServiceEndpoint,
    StateBackend,
)

__all__ = [
    "BotConfig",
    "CacheTTLs",
    "CatalogueEntry",
    "Config",
    "Environment",
    "ServiceCatalogue",
    "ServiceEndpoint",
    "StateBackend",
    "load_catalogue",
]
