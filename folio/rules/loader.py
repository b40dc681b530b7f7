import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from folio.rules.models import Rules

logger = logging.getLogger(__name__)

_FENCE_OPEN = "```yaml"
_FENCE = "```"


def extract_yaml(text: str) -> str:
    """
    Body of the first ```yaml fenced block, or the whole text if there is none.

    Lets rules live inside a markdown document next to their prose.
    """
    body: list[str] | None = None
    for line in text.splitlines():
        marker = line.strip()
        if body is None:
            if marker.startswith(_FENCE_OPEN):
                body = []
            continue
        if marker.startswith(_FENCE):
            break
        body.append(line)
    return text if body is None else "\n".join(body)


def parse_rules(data: Any) -> Rules:
    try:
        return Rules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed:\n{e}") from e


def load_rules(path: Path) -> Rules:
    """
    Load and validate the rules file.

    Raises:
        FileNotFoundError: If the file is missing.
        ValueError: If the YAML or the schema is invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    source = extract_yaml(path.read_text())
    try:
        data = yaml.safe_load(source)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    rules = parse_rules(data)
    logger.debug("Loaded rules %s v%s from %s", rules.project.slug, rules.project.rules_version, path)
    return rules
