import logging
import os
from pathlib import Path

from servicecrm.domain.errors import ConfigurationError
from servicecrm.domain.policy import AccessPolicy
from servicecrm.rules.models import Rules

logger = logging.getLogger(__name__)


def validate_ops_rules(rules: Rules) -> None:
    """
    Validate operational requirements before startup.

    Raises ConfigurationError when a required environment variable is unset.
    """
    missing = [name for name in rules.ops.required_env if name not in os.environ]
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}"
        )


def prepare_startup(rules: Rules, data_dir: Path) -> AccessPolicy:
    """
    Fail-fast startup checks. Returns the validated access policy.

    Raises ConfigurationError on any invalid configuration.
    """
    validate_ops_rules(rules)
    policy = AccessPolicy(rules.access)
    data_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Configuration validated (timezone %s)", rules.finance.timezone)
    return policy
