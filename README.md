# pageview

The core parts of a keyboard-driven document viewer, as a plain Python
library. It needs only the standard library.

## Modules

- `pageview.surface`: `Surface` is an in-memory image. Its pixels are stored
  as blue, green, red, alpha bytes, and its colour channels are premultiplied
  by alpha. It offers `pixel`, `set_pixel`, `fill` and `create_similar`.
  `RGBA` is a colour with channels from 0 to 1. `parse_color` reads hex
  colours (`#rgb`, `#rrggbb`, with 3, 6, 9 or 12 digits) and `rgb(...)` /
  `rgba(...)` notation. It raises `ValueError` on anything else.

- `pageview.plugin`: `PluginManager` maps content types to document
  backends.
  - A backend is described by a `PluginDefinition`. That holds a name, a
    `PluginVersion`, MIME types and a `PluginFunctions` table of page
    callables.
  - `PluginManager.register` adds a definition and returns the `Plugin`. The
    first plugin to claim a content type keeps it. If none of a plugin's types
    are new, `register` returns `None`. A definition with no name or no MIME
    types raises `ValueError`.
  - `PluginManager.get_plugin` returns the plugin for a content type, or
    `None`. Content types are compared case-insensitively.
  - `add_dir` and `load` scan directories for files ending in `.plugin`. The
    default loader reads each file as a JSON manifest with `name`, `version`
    (a list of three integers) and `mime_types`. Another loader can be passed
    to `PluginManager(loader=...)`. `load` returns `True` if any plugin is
    registered.
  - `content_type_from_mime_type` and `content_type_equals` are the helpers
    used for this.

- `pageview.page`: `Page(plugin, index, document=None)` is one page of a
  document. Creating it calls the plugin's `page_init`. It offers
  `search_text`, `links`, `form_fields`, `images`, `image_surface`, `text`,
  `selection`, `render`, `label` and `signatures`, each passed on to the
  matching plugin function. `close` calls `page_clear`. A page can also be
  used as a context manager.
  - Failures raise `PageError`, and its `code` is an `ErrorCode`. A missing
    plugin function gives `ErrorCode.NOT_IMPLEMENTED`. Using a closed page
    gives `ErrorCode.INVALID_ARGUMENTS`.
  - `Rectangle`, `Image`, `SignatureInfo` and `SignatureState` are the data
    types that plugins return.

- `pageview.recolor`: `recolor(surface, dark, light, hue=True,
  reverse_video=False, image_rectangles=None)` recolours a surface in place
  for dark modes. Each pixel is interpolated between the dark and the light
  colour, and hue is optionally kept. In reverse-video mode, pixels inside
  the image rectangles are only made opaque. The simpler formulas
  (`recolor_fast`) are used when `use_fast_formula` says they give the same
  result. Otherwise `recolor_slow` is used. `colorumax` and
  `pixel_inside_rectangles` are the helpers used for this.

- `pageview.render`: `Renderer(cache_size, geometry=..., device_scale=...,
  dispatch=...)` renders pages on a single worker thread.
  - `Renderer.request(page)` returns a `RenderRequest`.
    `RenderRequest.render(last_view_time)` queues a job unless a live one is
    already queued. Queued jobs run oldest view time first. `abort` marks the
    request's jobs as aborted. `update_view_time` records the current time.
  - Callbacks are attached with `connect("completed" | "cache-added" |
    "cache-invalidated", callback)`. Each callback receives the request
    first. `completed` also receives the rendered `Surface`.
  - `page_cache_add(page_index)` keeps a fixed-size cache of page indices.
    When it is full, it evicts the page whose request was viewed least
    recently.
  - The recolour settings are `recolor_enabled`, `recolor_hue`,
    `recolor_reverse_video`, `set_recolor_colors` and
    `set_recolor_colors_str`. `recolor_colors` returns `(light, dark)`.
  - `lock()` is a context manager that holds the render lock. `stop()` stops
    results from being delivered. `close()` also drops queued jobs and waits
    for the worker to finish.

- `pageview.marks`: `MarkStore` saves and restores named positions
  (page, scroll position, zoom) of a target view that has the attributes and
  methods described by `MarkTarget`.
  - `add` saves a mark, `evaluate` jumps back to one and `delete` removes
    marks.
  - `cmd_add` and `cmd_delete` handle command arguments, which must be
    letters.
  - `begin_add` or `begin_evaluate`, followed by `handle_key(key)`, handles
    the mark shortcut. Such keys may be letters or digits.

## Example

```python
from pageview.plugin import PluginDefinition, PluginFunctions, PluginManager, PluginVersion

manager = PluginManager()
definition = PluginDefinition(
    name="text",
    version=PluginVersion(1, 0, 0),
    mime_types=("text/plain",),
    functions=PluginFunctions(),
)
manager.register(definition, "builtin:text")
plugin = manager.get_plugin("text/plain")
```

## What it does not do

- There is no window, page widget, print dialog or command-line program.
- Plugin files on disk are only JSON manifests. They name a plugin and its
  MIME types, but they carry no page functions. Working backends are supplied
  as `PluginFunctions` in Python and added with `register`.
- There is no document model of its own. Page size and zoom come from the
  `geometry` callable given to `Renderer`. The view that marks act on comes
  from the `MarkTarget` passed to `MarkStore`.

## Installing and testing

```
pip install .
pip install ".[test]"
pytest
```