"""
Configuration module for the voice relay.

Key components:
- constants: protocol names, tool names and default values shared across modules.
- logging_config: console and rotating-file logging for the application logger.
- settings: environment-derived settings read once at process start.

Usage examples:
```python
from voice_relay.config.constants import LOGGER_NAME
from voice_relay.config.logging_config import configure_logging
from voice_relay.config.settings import get_settings

logger = configure_logging()
settings = get_settings()
logger.info(f"Listening on port {settings.port}")
```
"""
