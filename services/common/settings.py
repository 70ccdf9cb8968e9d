"""
Lightweight settings base class with a pydantic_settings-like surface.

Services subclass ``BaseSettings`` and declare annotated fields; values are
resolved from keyword arguments, environment variables (including aliases),
an optional ``.env`` file and finally the declared default. Instances are
plain objects, so tests can build them directly with keyword arguments.
"""

from __future__ import annotations

import json
import os
from abc import ABC
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar, Union, get_type_hints

T = TypeVar("T", bound="BaseSettings")


class AliasChoices:
    """Multiple environment variable names for a single field."""

    def __init__(self, *choices: str) -> None:
        self.choices = list(choices)

    def __iter__(self):
        return iter(self.choices)


class FieldInfo:
    """Information about a field in a settings class."""

    def __init__(
        self,
        default: Any = None,
        description: str = "",
        validation_alias: Optional[Union[str, List[str], AliasChoices]] = None,
        required: bool = False,
    ) -> None:
        self.default = default
        self.description = description
        self.validation_alias = validation_alias
        self.required = required


def Field(
    default: Any = None,
    *,
    description: str = "",
    validation_alias: Optional[Union[str, List[str], AliasChoices]] = None,
    **kwargs: Any,
) -> Any:
    """Create a field descriptor for settings. ``...`` marks a required field."""
    required = default is ...
    if required:
        default = None

    return FieldInfo(
        default=default,
        description=description,
        validation_alias=validation_alias,
        required=required,
    )


class SettingsConfigDict:
    """Configuration for settings loading."""

    def __init__(
        self,
        env_file: Optional[str] = None,
        env_file_encoding: str = "utf-8",
        case_sensitive: bool = True,
        extra: str = "forbid",
    ) -> None:
        self.env_file = env_file
        self.env_file_encoding = env_file_encoding
        self.case_sensitive = case_sensitive
        self.extra = extra


class BaseSettings(ABC):
    """Base class for settings that loads from environment variables."""

    model_config: SettingsConfigDict = SettingsConfigDict()

    def __init__(self, **kwargs: Any) -> None:
        env_vars: Dict[str, str] = {}
        if self.model_config.env_file:
            env_vars = self._load_env_file(self.model_config.env_file)

        for field_name, field_type in self._field_types().items():
            field_info = getattr(self.__class__, field_name, None)
            if isinstance(field_info, FieldInfo):
                default_value = field_info.default
                validation_alias = field_info.validation_alias
                required = field_info.required
            else:
                default_value = field_info
                validation_alias = None
                required = False

            # Priority: kwargs, environment, .env file, default
            if field_name in kwargs:
                value = kwargs[field_name]
            else:
                value = self._lookup(field_name, validation_alias, env_vars)
                if value is None:
                    if required:
                        raise ValueError(
                            f"Required field '{field_name}' not found in environment"
                        )
                    value = default_value

            if value is not None:
                value = self._convert_value(value, field_type)

            setattr(self, field_name, value)

    @classmethod
    def _field_types(cls) -> Dict[str, Any]:
        return {
            name: hint
            for name, hint in get_type_hints(cls).items()
            if not name.startswith("_") and name != "model_config"
        }

    def _lookup(
        self,
        field_name: str,
        validation_alias: Optional[Union[str, List[str], AliasChoices]],
        env_vars: Dict[str, str],
    ) -> Optional[str]:
        env_names: List[str] = []
        if isinstance(validation_alias, AliasChoices):
            env_names.extend(validation_alias.choices)
        elif isinstance(validation_alias, list):
            env_names.extend(validation_alias)
        elif validation_alias:
            env_names.append(validation_alias)
        env_names.append(field_name.upper())

        if not self.model_config.case_sensitive:
            env_names.extend([name.lower() for name in env_names])

        for env_name in env_names:
            if env_name in os.environ:
                return os.environ[env_name]
            if env_name in env_vars:
                return env_vars[env_name]
        return None

    def _load_env_file(self, env_file_path: str) -> Dict[str, str]:
        """Load environment variables from a .env file."""
        env_vars: Dict[str, str] = {}
        env_path = Path(env_file_path)

        if env_path.exists():
            with open(
                env_path, "r", encoding=self.model_config.env_file_encoding
            ) as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith("#") and "=" in line:
                        key, value = line.split("=", 1)
                        env_vars[key.strip()] = value.strip().strip("\"'")

        return env_vars

    def _convert_value(self, value: Any, target_type: Type) -> Any:
        """Convert a string value to the target type."""
        if not isinstance(value, str):
            return value

        if target_type is bool:
            return value.lower() in ("true", "1", "yes", "on")
        if target_type is int:
            return int(value)
        if target_type is float:
            return float(value)

        origin = getattr(target_type, "__origin__", None)
        if origin is list:
            if value.startswith("[") and value.endswith("]"):
                return json.loads(value)
            return [item.strip() for item in value.split(",") if item.strip()]

        # Optional[X] -> convert as X
        if origin is Union:
            non_none_types = [arg for arg in target_type.__args__ if arg is not type(None)]
            if non_none_types:
                return self._convert_value(value, non_none_types[0])

        return value

    def model_dump(self, exclude: Optional[set] = None) -> Dict[str, Any]:
        """Return the resolved settings as a dictionary."""
        exclude = exclude or set()
        return {
            name: getattr(self, name)
            for name in self._field_types()
            if name not in exclude
        }
