#!/usr/bin/env python3
"""
Settings loader for the unitsite static site generator.
Supports configuration from config.toml, config.yaml, config.yml or config.json files,
using the same key names as Hugo (baseURL, paginate, [menu.main], [taxonomies], ...).
"""

import os
import json
import tomllib
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Any, Mapping, Optional, Tuple
from urllib.parse import urlparse

import yaml

from .errors import ConfigError


@dataclass(frozen=True)
class MenuEntry:
    """A single navigation link."""

    identifier: str
    name: str
    url: str
    weight: int = 0


@dataclass(frozen=True)
class SiteConfig:
    """Validated, read-only site configuration shared by every build step."""

    base_url: str
    title: str
    theme: str
    paginate: int = 10
    menus: Mapping[str, Tuple[MenuEntry, ...]] = field(default_factory=lambda: MappingProxyType({}))
    taxonomies: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({'tag': 'tags', 'category': 'categories'})
    )
    language_code: str = 'en'
    author: Optional[str] = None
    copyright: Optional[str] = None
    params: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    unsafe_html: bool = False
    main_sections: Tuple[str, ...] = ()
    content_dir: str = 'content'
    publish_dir: str = 'public'
    build_drafts: bool = False

    @property
    def menu(self) -> Tuple[MenuEntry, ...]:
        """Entries of the main menu, in display order."""
        return self.menus.get('main', ())

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> 'SiteConfig':
        """
        Validate a raw settings mapping into a SiteConfig.

        Raises:
            ConfigError: naming the first missing or invalid field
        """
        return cls(
            base_url=_parse_base_url(settings.get('baseURL')),
            title=_required_string(settings, 'title'),
            theme=_required_string(settings, 'theme'),
            paginate=_parse_paginate(settings),
            menus=_parse_menus(settings.get('menu')),
            taxonomies=_parse_taxonomies(settings.get('taxonomies')),
            language_code=_optional_string(settings, 'languageCode') or 'en',
            author=_optional_string(settings, 'author'),
            copyright=_optional_string(settings, 'copyright'),
            params=MappingProxyType(dict(_mapping(settings, 'params'))),
            unsafe_html=_parse_unsafe(settings.get('markup')),
            main_sections=_parse_main_sections(_mapping(settings, 'params')),
            content_dir=_optional_string(settings, 'contentDir') or 'content',
            publish_dir=_optional_string(settings, 'publishDir') or 'public',
            build_drafts=_parse_bool(settings, 'buildDrafts'),
        )


def _required_string(settings: Dict[str, Any], key: str) -> str:
    value = settings.get(key)
    if value is None:
        raise ConfigError(key, "is required")
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(key, "must be a non-empty string")
    return value.strip()


def _optional_string(settings: Dict[str, Any], key: str) -> Optional[str]:
    value = settings.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(key, "must be a string")
    return value


def _mapping(settings: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = settings.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(key, "must be a table")
    return value


def _parse_bool(settings: Dict[str, Any], key: str) -> bool:
    value = settings.get(key, False)
    if not isinstance(value, bool):
        raise ConfigError(key, "must be true or false")
    return value


def _parse_base_url(value: Any) -> str:
    if value is None:
        raise ConfigError('baseURL', "is required")
    if not isinstance(value, str):
        raise ConfigError('baseURL', "must be a string")
    parsed = urlparse(value.strip())
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise ConfigError('baseURL', f"must be an absolute http(s) URL, got '{value}'")
    url = value.strip()
    return url if url.endswith('/') else url + '/'


def _parse_paginate(settings: Dict[str, Any]) -> int:
    key = 'paginate'
    value = settings.get('paginate')
    if value is None:
        pagination = settings.get('pagination')
        if isinstance(pagination, dict) and 'pagerSize' in pagination:
            key = 'pagination.pagerSize'
            value = pagination['pagerSize']
    if value is None:
        return 10
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(key, f"must be a positive integer, got {value!r}")
    return value


def _parse_menus(value: Any) -> Mapping[str, Tuple[MenuEntry, ...]]:
    if value is None:
        return MappingProxyType({})
    if not isinstance(value, dict):
        raise ConfigError('menu', "must be a table of menus")

    menus = {}
    for menu_name, raw_entries in value.items():
        if not isinstance(raw_entries, list):
            raise ConfigError(f'menu.{menu_name}', "must be an array of entries")
        entries = []
        for index, raw in enumerate(raw_entries):
            where = f'menu.{menu_name}[{index}]'
            if not isinstance(raw, dict):
                raise ConfigError(where, "must be a table")
            for required in ('name', 'url'):
                if not isinstance(raw.get(required), str) or not raw[required]:
                    raise ConfigError(f'{where}.{required}', "is required")
            weight = raw.get('weight', 0)
            if isinstance(weight, bool) or not isinstance(weight, int):
                raise ConfigError(f'{where}.weight', "must be an integer")
            identifier = raw.get('identifier') or raw['name'].lower()
            entries.append(MenuEntry(identifier=str(identifier), name=raw['name'],
                                     url=raw['url'], weight=weight))
        entries.sort(key=lambda e: (e.weight, e.name))
        menus[menu_name] = tuple(entries)
    return MappingProxyType(menus)


def _parse_taxonomies(value: Any) -> Mapping[str, str]:
    if value is None:
        return MappingProxyType({'tag': 'tags', 'category': 'categories'})
    if not isinstance(value, dict):
        raise ConfigError('taxonomies', "must be a table of singular = \"plural\" pairs")
    for singular, plural in value.items():
        if not isinstance(plural, str) or not plural.strip():
            raise ConfigError(f'taxonomies.{singular}', "must be a non-empty string")
    return MappingProxyType({k: v.strip() for k, v in value.items()})


def _parse_unsafe(markup: Any) -> bool:
    # markup.goldmark.renderer.unsafe
    node = markup
    for key in ('goldmark', 'renderer', 'unsafe'):
        if not isinstance(node, dict):
            return False
        node = node.get(key)
    if node is None:
        return False
    if not isinstance(node, bool):
        raise ConfigError('markup.goldmark.renderer.unsafe', "must be true or false")
    return node


def _parse_main_sections(params: Dict[str, Any]) -> Tuple[str, ...]:
    value = params.get('mainSections', params.get('mainsections'))
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError('params.mainSections', "must be a list of section names")
    return tuple(value)


class SiteSettings:
    """Load and manage site configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'languageCode': 'en',
        'paginate': None,
        'contentDir': 'content',
        'publishDir': 'public',
        'buildDrafts': False,
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['config.toml', 'config.yaml', 'config.yml', 'config.json']

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = self.DEFAULT_SETTINGS.copy()
        self.config_file_path = None

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from the project's configuration file.

        Returns:
            Dictionary of configuration settings

        Raises:
            ConfigError: if no configuration file exists or it cannot be parsed
        """
        config_file = self._find_config_file()
        if not config_file:
            raise ConfigError(
                'config',
                f"no configuration file found in {self.config_dir} "
                f"(looked for {', '.join(self.CONFIG_FILES)})"
            )

        self.config_file_path = config_file
        loaded_settings = self._load_config_file(config_file)
        # Merge with defaults, giving preference to loaded settings
        self.settings.update({k: v for k, v in loaded_settings.items() if v is not None})
        return self.settings.copy()

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> SiteConfig:
        """Load the configuration file, apply overrides and validate the result."""
        self.load_settings()
        return SiteConfig.from_settings(self.merge_with_args(overrides or {}))

    def _find_config_file(self) -> Optional[str]:
        """
        Find the first available configuration file.

        Returns:
            Path to config file or None if not found
        """
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dictionary of configuration settings
        """
        filename = os.path.basename(config_path)
        file_ext = os.path.splitext(config_path)[1].lower()
        try:
            if file_ext == '.toml':
                with open(config_path, 'rb') as f:
                    data = tomllib.load(f)
            else:
                with open(config_path, 'r', encoding='utf-8') as f:
                    if file_ext in ['.yml', '.yaml']:
                        data = yaml.safe_load(f) or {}
                    elif file_ext == '.json':
                        data = json.load(f) or {}
                    else:
                        raise ConfigError(filename, f"unsupported config file format: {file_ext}")
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(filename, f"invalid TOML: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(filename, f"invalid YAML: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigError(filename, f"invalid JSON: {e}") from e
        except (IOError, OSError) as e:
            raise ConfigError(filename, f"cannot be read: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(filename, "must contain a mapping at the top level")
        return data

    def create_sample_config(self, force: bool = False) -> str:
        """
        Create a sample config.toml file.

        Args:
            force: Overwrite an existing file

        Returns:
            Path to created sample config file
        """
        config_path = os.path.join(self.config_dir, 'config.toml')
        if os.path.exists(config_path) and not force:
            raise FileExistsError(f"Configuration file already exists: {config_path}")

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write("# unitsite configuration file\n\n")
                f.write("baseURL = 'https://example.com/'\n")
                f.write("languageCode = 'en'\n")
                f.write("title = 'My Dev Blog'\n")
                f.write("theme = 'paper'\n")
                f.write("author = 'Site Author'\n")
                f.write("paginate = 10\n\n")
                f.write("[params]\n")
                f.write("  color = 'linen'\n")
                f.write("  bio = 'simply spreading some dev tips'\n\n")
                f.write("# render raw HTML embedded in Markdown (e.g. <kbd>, <mark>)\n")
                f.write("[markup]\n")
                f.write("  [markup.goldmark]\n")
                f.write("    [markup.goldmark.renderer]\n")
                f.write("      unsafe = true\n\n")
                f.write("[menu]\n")
                f.write("  [[menu.main]]\n")
                f.write("    identifier = 'about'\n")
                f.write("    name = 'About'\n")
                f.write("    url = '/about/'\n")
                f.write("    weight = 10\n\n")
                f.write("[taxonomies]\n")
                f.write("tag = 'tags'\n")
        except PermissionError:
            raise PermissionError(f"Permission denied creating configuration file: {config_path}")
        except (IOError, OSError) as e:
            raise IOError(f"Error writing configuration file {config_path}: {e}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.

        Args:
            args_dict: Dictionary of overrides keyed by configuration name

        Returns:
            Merged configuration dictionary
        """
        merged = self.settings.copy()

        # Override with non-None command line arguments
        for key, value in args_dict.items():
            if value is not None:
                merged[key] = value

        return merged
