import json

import pytest

from pageview.plugin import (
    PLUGIN_SUFFIX,
    PluginDefinition,
    PluginFunctions,
    PluginManager,
    PluginVersion,
    content_type_equals,
    content_type_from_mime_type,
)


def _write_manifest(directory, filename, **content):
    path = directory / filename
    path.write_text(json.dumps(content), encoding="utf-8")
    return path


def test_content_type_from_mime_type_normalises():
    assert content_type_from_mime_type(" Application/PDF ") == "application/pdf"


@pytest.mark.parametrize("mime", ["", "application", "application/", "/pdf", "a/b/c", "a b/c"])
def test_content_type_from_mime_type_rejects(mime):
    assert content_type_from_mime_type(mime) is None


def test_content_type_equals():
    assert content_type_equals("application/pdf", "APPLICATION/PDF")
    assert not content_type_equals("application/pdf", "image/png")


def test_register_and_lookup():
    manager = PluginManager()
    definition = PluginDefinition("pdf", PluginVersion(1, 2, 3), ("application/pdf",))
    plugin = manager.register(definition, "/tmp/pdf.plugin")
    assert plugin.name == "pdf"
    assert plugin.version == PluginVersion(1, 2, 3)
    assert plugin.path == "/tmp/pdf.plugin"
    assert manager.get_plugin("application/pdf") is plugin
    assert manager.get_plugin("Application/Pdf") is plugin
    assert manager.get_plugin("image/png") is None
    assert manager.get_plugin(None) is None
    assert manager.plugins == (plugin,)
    assert manager.content_types == ("application/pdf",)


def test_version_string():
    assert str(PluginVersion(1, 2, 3)) == "1.2.3"


def test_duplicate_types_first_plugin_wins():
    manager = PluginManager()
    first = manager.register(PluginDefinition("a", mime_types=("application/pdf",)))
    second = manager.register(PluginDefinition("b", mime_types=("application/pdf",)))
    assert second is None
    assert manager.get_plugin("application/pdf") is first
    assert manager.plugins == (first,)


def test_partial_overlap_still_registers():
    manager = PluginManager()
    first = manager.register(PluginDefinition("a", mime_types=("application/pdf",)))
    second = manager.register(
        PluginDefinition("b", mime_types=("application/pdf", "image/djvu"))
    )
    assert second is not None and second.name == "b"
    assert manager.get_plugin("image/djvu") is second
    assert manager.get_plugin("application/pdf") is first
    assert manager.content_types == ("application/pdf", "image/djvu")


def test_invalid_mime_types_are_dropped():
    manager = PluginManager()
    plugin = manager.register(PluginDefinition("x", mime_types=("bogus", "text/plain")))
    assert plugin.content_types == ["text/plain"]


def test_only_invalid_mime_types_not_registered():
    manager = PluginManager()
    assert manager.register(PluginDefinition("x", mime_types=("bogus",))) is None
    assert manager.plugins == ()


def test_register_requires_name_and_types():
    manager = PluginManager()
    with pytest.raises(ValueError):
        manager.register(PluginDefinition(None, mime_types=("text/plain",)))
    with pytest.raises(ValueError):
        manager.register(PluginDefinition("x"))


def test_plugin_functions_exposed():
    def page_init(page):
        return page

    manager = PluginManager()
    functions = PluginFunctions(page_init=page_init)
    plugin = manager.register(
        PluginDefinition("x", mime_types=("text/plain",), functions=functions)
    )
    assert plugin.functions.page_init is page_init
    assert plugin.functions.page_render_cairo is None


def test_load_from_directory(tmp_path):
    _write_manifest(
        tmp_path, "pdf" + PLUGIN_SUFFIX, name="pdf", version=[0, 2, 9], mime_types=["application/pdf"]
    )
    _write_manifest(tmp_path, "ignored.txt", name="txt", mime_types=["text/plain"])
    (tmp_path / ("subdir" + PLUGIN_SUFFIX)).mkdir()

    manager = PluginManager()
    manager.add_dir(tmp_path)
    assert manager.paths == (str(tmp_path),)
    assert manager.load() is True
    assert [plugin.name for plugin in manager.plugins] == ["pdf"]
    plugin = manager.get_plugin("application/pdf")
    assert plugin.version == PluginVersion(0, 2, 9)
    assert plugin.path == str(tmp_path / ("pdf" + PLUGIN_SUFFIX))
    assert manager.get_plugin("text/plain") is None


def test_load_skips_broken_manifests(tmp_path):
    (tmp_path / ("broken" + PLUGIN_SUFFIX)).write_text("{not json", encoding="utf-8")
    _write_manifest(tmp_path, "noname" + PLUGIN_SUFFIX, mime_types=["text/plain"])
    _write_manifest(tmp_path, "notypes" + PLUGIN_SUFFIX, name="empty")
    _write_manifest(tmp_path, "badversion" + PLUGIN_SUFFIX, name="v", version="1", mime_types=["a/b"])

    manager = PluginManager()
    manager.add_dir(tmp_path)
    assert manager.load() is False
    assert manager.plugins == ()


def test_load_without_directories():
    assert PluginManager().load() is False


def test_load_missing_directory(tmp_path):
    manager = PluginManager()
    manager.add_dir(tmp_path / "missing")
    assert manager.load() is False


def test_custom_loader(tmp_path):
    (tmp_path / ("one" + PLUGIN_SUFFIX)).write_bytes(b"")
    (tmp_path / ("two" + PLUGIN_SUFFIX)).write_bytes(b"")
    seen = []

    def loader(path):
        seen.append(path.name)
        if path.stem == "two":
            return None
        return PluginDefinition(path.stem, mime_types=("image/png",))

    manager = PluginManager(loader=loader)
    manager.add_dir(tmp_path)
    assert manager.load() is True
    assert seen == ["one" + PLUGIN_SUFFIX, "two" + PLUGIN_SUFFIX]
    assert manager.get_plugin("image/png").name == "one"