"""Tests for the compiled-artifact cache and its place in the render pipeline."""

from __future__ import annotations

import os
import threading
from pathlib import Path

import pytest

from kiln import (
    ArtifactCache,
    CodeGenerator,
    EngineMisconfiguredError,
    Environment,
    Lexer,
    ReadDeniedError,
    Scalar,
    StorageError,
    TemplateNotFoundError,
    WriteDeniedError,
    WriteFailedError,
)
from kiln.environment import artifact_path


class CountingLexer(Lexer):
    calls = 0

    def analyze(self, source):
        type(self).calls += 1
        return super().analyze(source)


class CountingGenerator(CodeGenerator):
    calls = 0

    def generate(self, *args, **kwargs):
        type(self).calls += 1
        return super().generate(*args, **kwargs)


@pytest.fixture
def spy_env():
    CountingLexer.calls = 0
    CountingGenerator.calls = 0
    return Environment(types={Scalar}, lexer_class=CountingLexer, generator_class=CountingGenerator)


class TestArtifactPath:
    """Artifacts sit next to their template under a hidden name."""

    def test_hidden_sibling(self):
        assert artifact_path("templates/page.html") == Path("templates/.page.html")

    def test_pure_function_of_path(self):
        assert artifact_path("a/b.txt") == artifact_path(Path("a") / "b.txt")

    def test_resolve_requires_template(self, tmp_path):
        with pytest.raises(TemplateNotFoundError, match="This template does not exist"):
            ArtifactCache().resolve(tmp_path / "missing.html")

    def test_resolve(self, write_template, tmp_path):
        path = write_template("x")
        assert ArtifactCache().resolve(path) == tmp_path / ".page.html"


class TestFreshness:
    def test_not_fresh_before_compile(self, write_template):
        assert not ArtifactCache().is_fresh(write_template("x"))

    def test_fresh_after_render(self, env, write_template):
        path = write_template("x")
        env.render(path)
        assert env.cache.is_fresh(path)

    def test_invalidate(self, env, write_template):
        path = write_template("x")
        env.render(path)
        assert env.cache.invalidate(path) is True
        assert not env.cache.is_fresh(path)
        assert env.cache.invalidate(path) is False


class TestCachedRender:
    """A fresh artifact skips the lexer and the code generator."""

    def test_second_render_does_not_compile(self, spy_env, write_template):
        path = write_template("{% if x is 5 %}yes{% endif %}{{ x }}")
        first = spy_env.render(path, variables={"x": 5})
        assert (CountingLexer.calls, CountingGenerator.calls) == (1, 1)

        second = spy_env.render(path, variables={"x": 5})
        assert (CountingLexer.calls, CountingGenerator.calls) == (1, 1)
        assert second == first == "yes5"

    def test_always_recompile(self, spy_env, write_template):
        path = write_template("{{ x }}")
        spy_env.render(path, variables={"x": 1})
        spy_env.render(path, variables={"x": 1}, always_recompile=True)
        assert CountingGenerator.calls == 2

    def test_environment_always_recompile(self, write_template):
        CountingGenerator.calls = 0
        env = Environment(types={Scalar}, always_recompile=True, generator_class=CountingGenerator)
        path = write_template("{{ x }}")
        env.render(path, variables={"x": 1})
        env.render(path, variables={"x": 1})
        assert CountingGenerator.calls == 2

    def test_stale_artifact_is_reused(self, env, write_template):
        """Freshness is existence only, so edits need a recompile."""
        path = write_template("old")
        env.render(path)
        path.write_text("new", encoding="utf-8")
        assert env.render(path) == "old"
        assert env.render(path, always_recompile=True) == "new"

    def test_cached_artifact_keeps_compile_time_drops(self, env, write_template):
        path = write_template("[{{ x }}]")
        assert env.render(path) == "[]"
        assert env.render(path, variables={"x": 1}) == "[]"


class TestStorageErrors:
    """Storage failures always reach the caller."""

    def test_missing_template(self, env, tmp_path):
        with pytest.raises(TemplateNotFoundError):
            env.render(tmp_path / "nope.html")

    @pytest.mark.parametrize("template", [None, ""])
    def test_no_template(self, env, template):
        with pytest.raises(TemplateNotFoundError, match="You did not specify a template to render."):
            env.render(template)

    def test_read_denied(self, env, write_template, monkeypatch):
        path = write_template("x")
        real_access = os.access
        monkeypatch.setattr(
            os, "access", lambda p, mode: False if mode == os.R_OK else real_access(p, mode)
        )
        with pytest.raises(ReadDeniedError) as exc_info:
            env.render(path)
        assert exc_info.value.path == str(path)

    def test_read_permission_error(self, write_template, monkeypatch):
        path = write_template("x")

        def deny(self, *args, **kwargs):
            raise PermissionError(13, "denied")

        monkeypatch.setattr(Path, "read_text", deny)
        with pytest.raises(ReadDeniedError):
            ArtifactCache().read_template(path)

    def test_write_denied(self, env, write_template, monkeypatch, tmp_path):
        path = write_template("x")
        real_access = os.access
        monkeypatch.setattr(
            os, "access", lambda p, mode: False if mode == os.W_OK else real_access(p, mode)
        )
        with pytest.raises(WriteDeniedError, match="I do not have permission to write to this template"):
            env.render(path)
        assert not (tmp_path / ".page.html").exists()

    def test_write_failed_cleans_up(self, env, write_template, monkeypatch, tmp_path):
        path = write_template("x")

        def fail(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", fail)
        with pytest.raises(WriteFailedError) as exc_info:
            env.render(path)
        assert isinstance(exc_info.value.__cause__, OSError)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["page.html"]

    def test_storage_errors_ignore_debug_setting(self, write_template, monkeypatch):
        env = Environment(types={Scalar}, debug=False)
        monkeypatch.setattr(os, "access", lambda p, mode: False)
        with pytest.raises(StorageError):
            env.render(write_template("x"))


class TestEngineConfiguration:
    def test_missing_lexer(self, write_template):
        env = Environment(lexer_class=None)
        with pytest.raises(EngineMisconfiguredError, match="The lexer is not available."):
            env.render(write_template("x"))

    def test_missing_generator(self):
        with pytest.raises(EngineMisconfiguredError, match="The code generator is not available."):
            Environment(generator_class=None).compile("x")

    def test_generator_without_generate(self):
        class Broken:
            pass

        with pytest.raises(EngineMisconfiguredError, match="Broken has no generate"):
            Environment(generator_class=Broken).compile("x")

    def test_cached_render_needs_no_engine(self, write_template):
        path = write_template("{{ x }}")
        Environment(types={Scalar}).render(path, variables={"x": 1})
        env = Environment(types={Scalar}, lexer_class=None, generator_class=None)
        assert env.render(path, variables={"x": 2}) == "2"


class TestConcurrentWrites:
    def test_parallel_persist_last_writer_wins(self, tmp_path):
        cache = ArtifactCache()
        artifact = tmp_path / ".page.html"
        texts = [f"text-{i}" * 50 for i in range(8)]
        threads = [threading.Thread(target=cache.persist, args=(artifact, text)) for text in texts]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert artifact.read_text() in texts
        assert [p.name for p in tmp_path.iterdir()] == [".page.html"]
