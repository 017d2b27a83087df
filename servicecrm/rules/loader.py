import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from servicecrm.domain.errors import ConfigurationError
from servicecrm.rules.models import Rules

logger = logging.getLogger(__name__)


def load_rules(path: Path) -> Rules:
    """
    Load and validate the rules file.

    Raises ConfigurationError if the file is missing, is not valid YAML,
    or does not match the rules schema.
    """
    if not path.exists():
        raise ConfigurationError(f"Rules file not found at: {path}")

    with open(path) as f:
        content = f.read()

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML syntax in rules file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Rules file {path} must contain a mapping at top level")

    try:
        rules = Rules.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Rules validation failed:\n{e}") from e

    logger.debug("Loaded rules %s v%s", rules.project.slug, rules.project.rules_version)
    return rules
