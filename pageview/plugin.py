"""Document plugins and the manager that maps content types to them."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

__all__ = [
    "PLUGIN_SUFFIX",
    "Plugin",
    "PluginDefinition",
    "PluginFunctions",
    "PluginManager",
    "PluginVersion",
    "content_type_equals",
    "content_type_from_mime_type",
]

logger = logging.getLogger(__name__)

PLUGIN_SUFFIX = ".plugin"


def content_type_from_mime_type(mime_type: str) -> Optional[str]:
    """Return the content type for a MIME type, or None if it is malformed."""
    text = mime_type.strip().lower()
    major, sep, minor = text.partition("/")
    if not sep or not major or not minor or "/" in minor:
        return None
    if any(char.isspace() for char in text):
        return None
    return text


def content_type_equals(first: str, second: str) -> bool:
    """Compare two content types."""
    return first.lower() == second.lower()


@dataclass(frozen=True)
class PluginVersion:
    major: int = 0
    minor: int = 0
    rev: int = 0

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.rev}"


@dataclass
class PluginFunctions:
    """Page operations a plugin provides; missing ones are None."""

    page_init: Optional[Callable] = None
    page_clear: Optional[Callable] = None
    page_search_text: Optional[Callable] = None
    page_links_get: Optional[Callable] = None
    page_form_fields_get: Optional[Callable] = None
    page_images_get: Optional[Callable] = None
    page_image_get_cairo: Optional[Callable] = None
    page_get_text: Optional[Callable] = None
    page_get_selection: Optional[Callable] = None
    page_render_cairo: Optional[Callable] = None
    page_get_label: Optional[Callable] = None
    page_get_signatures: Optional[Callable] = None


@dataclass
class PluginDefinition:
    name: Optional[str]
    version: PluginVersion = field(default_factory=PluginVersion)
    mime_types: tuple[str, ...] = ()
    functions: PluginFunctions = field(default_factory=PluginFunctions)


@dataclass
class Plugin:
    """A loaded plugin and the content types it handles."""

    definition: PluginDefinition
    path: Optional[str] = None
    content_types: list[str] = field(default_factory=list)

    @property
    def name(self) -> Optional[str]:
        return self.definition.name

    @property
    def version(self) -> PluginVersion:
        return self.definition.version

    @property
    def functions(self) -> PluginFunctions:
        return self.definition.functions


def _load_manifest(path: Path) -> PluginDefinition:
    """Read a JSON plugin manifest with name, version and mime_types."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"malformed manifest {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ValueError(f"manifest {path} is not an object")

    version = raw.get("version", [0, 0, 0])
    if (
        not isinstance(version, list)
        or len(version) != 3
        or not all(isinstance(part, int) for part in version)
    ):
        raise ValueError(f"manifest {path} has an invalid version")

    mime_types = raw.get("mime_types", [])
    if not isinstance(mime_types, list) or not all(isinstance(m, str) for m in mime_types):
        raise ValueError(f"manifest {path} has invalid mime types")

    name = raw.get("name")
    if name is not None and not isinstance(name, str):
        raise ValueError(f"manifest {path} has an invalid name")

    return PluginDefinition(
        name=name, version=PluginVersion(*version), mime_types=tuple(mime_types)
    )


class PluginManager:
    """Finds plugins in directories and maps content types to them.

    ``loader`` turns a plugin file into a PluginDefinition; by default
    plugin files are JSON manifests.
    """

    def __init__(
        self, loader: Optional[Callable[[Path], Optional[PluginDefinition]]] = None
    ) -> None:
        self._loader = loader or _load_manifest
        self._paths: list[str] = []
        self._plugins: list[Plugin] = []
        self._mappings: list[tuple[str, Plugin]] = []
        self._content_types: list[str] = []

    @property
    def paths(self) -> tuple[str, ...]:
        return tuple(self._paths)

    @property
    def plugins(self) -> tuple[Plugin, ...]:
        return tuple(self._plugins)

    @property
    def content_types(self) -> tuple[str, ...]:
        return tuple(self._content_types)

    def add_dir(self, directory) -> None:
        """Add a directory to search for plugins."""
        self._paths.append(os.fspath(directory))

    def load(self) -> bool:
        """Load plugins from all directories; True if any plugin is registered."""
        for directory in self._paths:
            try:
                names = sorted(os.listdir(directory))
            except OSError:
                logger.error("could not open plugin directory: %s", directory)
                continue
            for name in names:
                self._load_file(Path(directory) / name)
        return bool(self._plugins)

    def _load_file(self, path: Path) -> None:
        if not path.is_file():
            logger.debug("'%s' is not a regular file. Skipping.", path)
            return
        if path.suffix != PLUGIN_SUFFIX:
            logger.debug("'%s' is not a plugin file. Skipping.", path)
            return

        try:
            definition = self._loader(path)
        except (OSError, ValueError) as exc:
            logger.error("Could not load plugin '%s' (%s).", path, exc)
            return
        if definition is None:
            logger.error("'%s' is not a plugin.", path)
            return

        try:
            plugin = self.register(definition, str(path))
        except ValueError as exc:
            logger.error("%s", exc)
            return

        if plugin is None:
            logger.error("Could not register plugin '%s'.", path)
        else:
            logger.debug("Successfully loaded plugin from '%s'.", path)
            logger.debug("plugin %s: version %s", definition.name, definition.version)

    def register(self, definition: PluginDefinition, path=None) -> Optional[Plugin]:
        """Register a plugin; return it, or None if none of its types were new.

        Raises ValueError if the definition has no name or no MIME types.
        """
        if definition.name is None:
            raise ValueError("Plugin has no name.")
        if not definition.mime_types:
            raise ValueError("Plugin does not handle any mime types.")

        plugin = Plugin(definition, None if path is None else os.fspath(path))
        for mime_type in definition.mime_types:
            content_type = content_type_from_mime_type(mime_type)
            if content_type is None:
                logger.warning("plugin: unable to convert mime type: %s", mime_type)
            else:
                plugin.content_types.append(content_type)

        at_least_one = False
        for content_type in plugin.content_types:
            if self._add_mapping(content_type, plugin):
                logger.debug("plugin: filetype mapping added: %s", content_type)
                at_least_one = True
            else:
                logger.error("plugin: filetype already registered: %s", content_type)

        if not at_least_one:
            return None
        self._plugins.append(plugin)
        return plugin

    def _add_mapping(self, content_type: str, plugin: Plugin) -> bool:
        if any(content_type_equals(content_type, known) for known, _ in self._mappings):
            return False
        self._mappings.append((content_type, plugin))
        self._content_types.append(content_type)
        return True

    def get_plugin(self, content_type: Optional[str]) -> Optional[Plugin]:
        """Return the plugin handling ``content_type``, or None."""
        if content_type is None:
            return None
        for known, plugin in self._mappings:
            if content_type_equals(content_type, known):
                return plugin
        return None