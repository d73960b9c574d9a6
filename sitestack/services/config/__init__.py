"""Configuration package (Facade).

Re-exports the runtime configuration types so callers import them from one
stable path:

	from sitestack.services.config import AwsConfig, PollingConfig
"""

from sitestack.services.config.aws_config import AwsConfig
from sitestack.services.config.polling_config import PollingConfig

__all__ = ["AwsConfig", "PollingConfig"]
