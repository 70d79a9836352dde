import os
import re
from typing import Any, Dict, Optional

import yaml

from schemagen.utils.logging import logger

# Pattern to match ${VAR} or ${env:VAR}
ENV_PATTERN = re.compile(r"\$\{(?:env:)?([A-Za-z0-9_]+)\}")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override dictionary into base dictionary.

    Rules:
    1. Dicts are merged recursively.
    2. The 'types' list is extended, keeping first occurrences.
    3. Other values are overwritten by the override.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        elif key == "types" and isinstance(value, list) and isinstance(result.get(key), list):
            result[key] = result[key] + [t for t in value if t not in result[key]]
        else:
            if key in result:
                logger.debug("Overwriting key during merge", key=key)
            result[key] = value
    return result


def load_yaml_with_env(path: str, env: Optional[str] = None) -> Dict[str, Any]:
    """Load a YAML config file with environment variable substitution.

    Supports:
    - ${VAR_NAME} and ${env:VAR_NAME} substitution
    - 'imports' list of relative paths merged under the current file
    - 'environments' overrides selected by the env param

    Args:
        path: Path to YAML file
        env: Environment name (e.g., 'ci', 'release') to apply overrides

    Returns:
        Parsed dictionary (merged with imports and env overrides)

    Raises:
        FileNotFoundError: If the file or an import does not exist
        ValueError: If an environment variable is missing
        yaml.YAMLError: If YAML parsing fails
    """
    logger.debug("Loading YAML configuration", path=path, env=env)

    if not os.path.exists(path):
        raise FileNotFoundError(f"YAML file not found: {path}")

    abs_path = os.path.abspath(path)
    base_dir = os.path.dirname(abs_path)

    with open(abs_path, "r", encoding="utf-8") as f:
        content = f.read()

    def replace_env(match):
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            logger.error("Missing required environment variable", variable=var_name, file=abs_path)
            raise ValueError(f"Missing environment variable: {var_name}")
        return value

    substituted_content = ENV_PATTERN.sub(replace_env, content)

    try:
        data = yaml.safe_load(substituted_content) or {}
    except yaml.YAMLError as e:
        logger.error("YAML parsing failed", path=abs_path, error=str(e))
        raise

    if not isinstance(data, dict):
        raise ValueError(f"Top-level YAML in {abs_path} must be a mapping")

    imports = data.pop("imports", [])
    if isinstance(imports, str):
        imports = [imports]

    for import_path in imports:
        full_import_path = (
            import_path if os.path.isabs(import_path) else os.path.join(base_dir, import_path)
        )
        if not os.path.exists(full_import_path):
            raise FileNotFoundError(f"Imported YAML file not found: {full_import_path}")

        logger.debug("Merging imported configuration", path=full_import_path)
        imported_data = load_yaml_with_env(full_import_path, env=env)
        # The importing file wins over what it imports
        data = _deep_merge(imported_data, data)

    environments = data.pop("environments", {}) or {}
    if env:
        if env in environments:
            logger.debug(
                "Applying environment overrides",
                env=env,
                override_keys=list(environments[env].keys()),
            )
            data = _deep_merge(data, environments[env])
        else:
            logger.debug(
                "No environment override found",
                env=env,
                available_environments=list(environments.keys()),
            )

    return data
