from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import ConfigError
from .runtime.formatters import AUTOESCAPE_MODES, DEFAULT_FORMATTER
from .syntax.parser import DEFAULT_MAX_DEPTH

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# --------------------------------------------------------------------------- #
# ДЕФОЛТЫ
# --------------------------------------------------------------------------- #
_DEFAULT_CFG: Dict[str, Any] = {
    "schema_version": SCHEMA_VERSION,
    "max_depth": DEFAULT_MAX_DEPTH,
    "autoescape": "html",
    # неразрешимый путь в {{ if }} считается Absent
    "strict_conditions": False,
    "default_formatter": DEFAULT_FORMATTER,
    "templates": {},
}

# --------------------------------------------------------------------------- #
# YAML loader
# --------------------------------------------------------------------------- #
_yaml = YAML(typ="safe")


@dataclass
class EngineConfig:
    """
    Настройки движка.

    Attributes:
        max_depth: Предел вложенности блоков при компиляции и рендеринге
        autoescape: Режим форматтера по умолчанию ("html" или "none")
        strict_conditions: Ошибка вместо Absent для неразрешимых путей в условиях
        default_formatter: Имя форматтера для подстановок без явного форматтера
        templates: Подшаблоны (имя -> исходный текст)
    """
    max_depth: int = DEFAULT_MAX_DEPTH
    autoescape: str = "html"
    strict_conditions: bool = False
    default_formatter: str = DEFAULT_FORMATTER
    templates: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], source: str = "") -> EngineConfig:
        """
        Создает конфигурацию из словаря, проверяя значения.

        Raises:
            ConfigError: При некорректных значениях
        """
        unknown = sorted(set(raw) - set(_DEFAULT_CFG))
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")

        cfg = _merge_defaults(raw)

        if cfg["schema_version"] != SCHEMA_VERSION:
            raise ConfigError(
                f"Unsupported config schema {cfg['schema_version']} "
                f"(engine expects {SCHEMA_VERSION})",
                source,
            )

        max_depth = cfg["max_depth"]
        if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 1:
            raise ConfigError(f"max_depth must be a positive integer, got {max_depth!r}", source)

        if cfg["autoescape"] not in AUTOESCAPE_MODES:
            raise ConfigError(
                f"autoescape must be one of {', '.join(AUTOESCAPE_MODES)}, got {cfg['autoescape']!r}",
                source,
            )

        if not isinstance(cfg["strict_conditions"], bool):
            raise ConfigError(
                f"strict_conditions must be a boolean, got {cfg['strict_conditions']!r}", source
            )

        if not isinstance(cfg["default_formatter"], str) or not cfg["default_formatter"]:
            raise ConfigError("default_formatter must be a non-empty string", source)

        templates = cfg["templates"] or {}
        if not isinstance(templates, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in templates.items()
        ):
            raise ConfigError("templates must be a mapping of names to template sources", source)

        return cls(
            max_depth=max_depth,
            autoescape=cfg["autoescape"],
            strict_conditions=cfg["strict_conditions"],
            default_formatter=cfg["default_formatter"],
            templates=dict(templates),
        )


# --------------------------------------------------------------------------- #
# HELPERS
# --------------------------------------------------------------------------- #
def _merge_defaults(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Накладываем значения пользователя поверх дефолтов."""
    cfg = _DEFAULT_CFG.copy()
    cfg.update(raw)                      # пользовательские ключи перекрывают
    return cfg


# --------------------------------------------------------------------------- #
# PUBLIC API
# --------------------------------------------------------------------------- #
def load_config(path: Path) -> EngineConfig:
    """
    Загрузить конфигурацию движка из YAML.

    • Если файла нет, вернуть дефолты.
    • Если schema_version отсутствует, считаем, что это актуальная версия.
    • Документ должен быть отображением.
    """
    if not path.exists():
        return EngineConfig()

    try:
        raw = _yaml.load(path.read_text(encoding="utf-8")) or {}
    except YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}", str(path))

    if not isinstance(raw, dict):
        raise ConfigError("YAML must be a mapping", str(path))

    logger.debug(f"Loaded engine config from {path}")
    return EngineConfig.from_dict(raw, str(path))


__all__ = ["EngineConfig", "load_config", "SCHEMA_VERSION"]
