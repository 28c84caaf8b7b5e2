"""Tests for the file data model."""

import pytest

from model.file import (
    File,
    LoadOptions,
    ExpansionContext,
    is_node_module,
    ensure_dotted_relative,
    node_module_globs,
    extra_globs,
)


class TestFile:
    """Tests for File class."""

    def test_new_file(self):
        """Test a fresh file has no metadata."""
        file = File("/project/index.js")

        assert file.abs_path == "/project/index.js"
        assert file.dependencies == {}
        assert file.real_path is None
        assert file.real_size is None
        assert file.size is None
        assert file.contents is None
        assert file.package is None
        assert file.module_root is None
        assert not file.variable_imports
        assert not file.context_expanded

    def test_abs_path_is_read_only(self):
        """Test the identity path cannot be reassigned."""
        file = File("/project/index.js")

        with pytest.raises(AttributeError):
            file.abs_path = "/other.js"

    def test_add_dependency_first_writer_wins(self):
        """Test an existing dependency is never overwritten."""
        file = File("/project/index.js")

        assert file.add_dependency("./a.js", "/project/a.js")
        assert not file.add_dependency("./a.js")

        assert file.dependencies == {"./a.js": "/project/a.js"}
        assert "./a.js" in file
        assert file.has_dependency("./a.js")

    def test_dependencies_property_returns_copy(self):
        """Test modifying the returned mapping doesn't affect the file."""
        file = File("/project/index.js")
        file.add_dependency("lodash")

        deps = file.dependencies
        deps["other"] = None

        assert "other" not in file

    def test_attach_package_sets_both_fields(self):
        """Test package and module root are set together."""
        file = File("/project/node_modules/pkg/index.js")
        file.attach_package({"name": "pkg"}, "/project/node_modules/pkg")

        assert file.package == {"name": "pkg"}
        assert file.module_root == "/project/node_modules/pkg"

    def test_to_dict(self):
        """Test the JSON-friendly view."""
        file = File("/project/index.js")
        file.add_dependency("b")
        file.add_dependency("a")
        file.size = 10

        data = file.to_dict()

        assert data["absPath"] == "/project/index.js"
        assert list(data["deps"]) == ["a", "b"]
        assert data["size"] == 10
        assert "realPath" not in data
        assert "moduleRoot" not in data

    def test_repr(self):
        """Test string representation."""
        file = File("/project/index.js")
        file.add_dependency("a")

        assert "deps=1" in repr(file)


class TestLoadOptions:
    """Tests for load options."""

    def test_defaults(self):
        options = LoadOptions()

        assert options.load_content
        assert options.expand == "none"
        assert not options.is_entry
        assert options.context is None

    def test_unknown_expand_mode(self):
        with pytest.raises(ValueError):
            LoadOptions(expand="everything")

    def test_context(self):
        context = ExpansionContext(module_root="/pkg", globs=["lib"])
        options = LoadOptions(expand="variable", context=context)

        assert options.context.module_root == "/pkg"
        assert not options.context.expanded


class TestHelpers:
    """Tests for path and glob helpers."""

    def test_is_node_module(self):
        assert is_node_module("lodash")
        assert is_node_module("@scope/pkg")
        assert is_node_module("lodash/fp")
        assert not is_node_module("./a")
        assert not is_node_module("../a")
        assert not is_node_module("/abs/a.js")
        assert not is_node_module(".")
        assert not is_node_module("")

    def test_ensure_dotted_relative(self):
        assert ensure_dotted_relative("/p", "/p/lib/a.js") == "./lib/a.js"
        assert ensure_dotted_relative("/p/lib", "/p/package.json") == "../package.json"
        assert ensure_dotted_relative("/p", "/p/a.js") == "./a.js"

    def test_ensure_dotted_relative_dot_names(self):
        assert ensure_dotted_relative("/p", "/p/.eslintrc.js") == "./.eslintrc.js"
        assert ensure_dotted_relative("/p", "/p/.github/ci.js") == "./.github/ci.js"
        assert ensure_dotted_relative("/p", "/p/..odd.js") == "./..odd.js"
        assert ensure_dotted_relative("/p/lib", "/p") == ".."
        assert not is_node_module(ensure_dotted_relative("/p", "/p/.eslintrc.js"))

    def test_node_module_globs_from_files(self):
        globs = node_module_globs({"files": ["lib", "!**/*.spec.js"]})

        assert globs[:2] == ["lib", "!**/*.spec.js"]
        assert "!node_modules/" in globs

    def test_node_module_globs_default(self):
        globs = node_module_globs({"name": "pkg"})

        assert "**/*.js" in globs
        assert "**/*.json" in globs
        assert node_module_globs(None) == globs

    def test_node_module_globs_single_string(self):
        assert node_module_globs({"files": "lib/**"})[0] == "lib/**"

    def test_extra_globs(self):
        assert extra_globs({"pkg": {"assets": ["assets/**"]}}) == ["assets/**"]
        assert extra_globs({"pkg": {"assets": "views/*"}}) == ["views/*"]
        assert extra_globs({"pkg": {}}) == []
        assert extra_globs({"pkg": "invalid"}) == []
        assert extra_globs(None) == []
