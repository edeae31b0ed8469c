"""
Tests for the sandbox policy, path validator and file operations.
"""

import os
import tempfile
from pathlib import Path

import pytest

from sandbox_mcp.filesystem import (
    Allowed,
    Denied,
    Invalid,
    InvalidPathError,
    PathValidator,
    PolicyDeniedError,
    SandboxedFileReader,
    SandboxedFileWriter,
    SandboxPolicy,
)
from sandbox_mcp.filesystem.paths import extension_of, is_within, lexical_resolve
from sandbox_mcp.filesystem.validator import FORBIDDEN_DIRECTORY, OUTSIDE_PERMITTED


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing (symlink-free path)."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def sandbox(temp_dir):
    """The allowed root inside the temporary directory."""
    root = temp_dir / "sandbox"
    root.mkdir()
    return root


@pytest.fixture
def policy(sandbox):
    """Create a test sandbox policy."""
    return SandboxPolicy(
        allowed_roots=[sandbox],
        blocked_roots=[sandbox / ".secret"],
        allowed_extensions=[".txt", "md"],
    )


@pytest.fixture
def validator(policy):
    """Create a PathValidator instance."""
    return PathValidator(policy)


@pytest.fixture
def reader(validator):
    return SandboxedFileReader(validator)


@pytest.fixture
def writer(validator):
    return SandboxedFileWriter(validator)


class TestPathHelpers:
    """Test the pure path helpers."""

    def test_is_within_requires_component_boundary(self):
        root = os.path.abspath("/sandbox")
        assert is_within(root, root)
        assert is_within(os.path.join(root, "a.txt"), root)
        assert not is_within(os.path.abspath("/sandboxed/a.txt"), root)

    def test_is_within_filesystem_root(self):
        root = os.path.abspath(os.sep)
        assert is_within(os.path.abspath("/anything/below"), root)

    def test_lexical_resolve_collapses_dot_segments(self):
        assert lexical_resolve("/a/./b/../c") == os.path.abspath("/a/c")

    def test_lexical_resolve_rejects_null_byte(self):
        with pytest.raises(ValueError):
            lexical_resolve("/a/b\x00c")

    def test_extension_of(self):
        assert extension_of("/a/b/Report.TXT") == ".txt"
        assert extension_of("/a/b/archive.tar.gz") == ".gz"
        assert extension_of("/a/b/Makefile") == ""
        assert extension_of("/a/b/.bashrc") == ""
        assert extension_of("/a/dir.d/file") == ""


class TestSandboxPolicy:
    """Test SandboxPolicy."""

    def test_default_policy(self):
        """Test default configuration."""
        policy = SandboxPolicy()
        assert len(policy.allowed_roots) == 1
        assert str(policy.allowed_roots[0]).endswith("00_AI_Area")
        assert ".txt" in policy.allowed_extensions
        assert policy.resolve_symlinks is True
        assert any(str(p).endswith(".ssh") for p in policy.blocked_roots)

    def test_roots_are_canonical(self, sandbox):
        policy = SandboxPolicy(
            allowed_roots=[f"{sandbox}/sub/../", str(sandbox)],
            blocked_roots=[],
            allowed_extensions=[],
        )
        # Trailing separator and ".." removed, duplicates collapsed
        assert policy.allowed_roots == (sandbox,)

    def test_extension_normalization(self):
        """Test that extensions are normalized with dots and lowercased."""
        policy = SandboxPolicy(allowed_roots=["/x"], allowed_extensions=["PY", ".Js"])
        assert policy.allowed_extensions == frozenset({".py", ".js"})

    def test_policy_is_immutable(self, policy):
        with pytest.raises(Exception):
            policy.resolve_symlinks = False

    def test_unknown_field_rejected(self):
        with pytest.raises(Exception):
            SandboxPolicy(allowed_roots=["/x"], writable=True)

    @pytest.mark.skipif(os.name == "nt", reason="home comes from USERPROFILE on Windows")
    def test_tilde_in_root_expanded(self, temp_dir, monkeypatch):
        monkeypatch.setenv("HOME", str(temp_dir))
        policy = SandboxPolicy(allowed_roots=["~/work"], blocked_roots=[])
        assert policy.allowed_roots == (temp_dir / "work",)
        assert policy.configured_allowed_roots == ("~/work",)

    def test_relative_root_resolved_against_cwd(self, temp_dir, monkeypatch):
        monkeypatch.chdir(temp_dir)
        policy = SandboxPolicy(allowed_roots=["work"], blocked_roots=[])
        assert policy.allowed_roots == (temp_dir / "work",)


class TestPathValidator:
    """Test PathValidator.validate_path."""

    def test_allowed_path(self, sandbox, validator):
        result = validator.validate_path(str(sandbox / "a.txt"))
        assert result == Allowed(sandbox / "a.txt")

    def test_root_itself_allowed(self, sandbox, validator):
        assert isinstance(validator.validate_path(str(sandbox)), Allowed)

    def test_blocked_path_denied(self, sandbox, validator):
        result = validator.validate_path(str(sandbox / ".secret" / "x.txt"))
        assert isinstance(result, Denied)
        assert result.reason == FORBIDDEN_DIRECTORY
        assert result.attempted_path == str(sandbox / ".secret")

    def test_outside_path_denied(self, temp_dir, validator):
        result = validator.validate_path(str(temp_dir / "elsewhere.txt"))
        assert isinstance(result, Denied)
        assert result.reason == OUTSIDE_PERMITTED
        assert result.attempted_path == str(temp_dir / "elsewhere.txt")

    def test_traversal_outside_denied(self, sandbox, validator):
        result = validator.validate_path(f"{sandbox}/../elsewhere/file.txt")
        assert isinstance(result, Denied)
        assert result.reason == OUTSIDE_PERMITTED

    def test_traversal_staying_inside_allowed(self, sandbox, validator):
        result = validator.validate_path(f"{sandbox}/a/../b/./c.txt")
        assert result == Allowed(sandbox / "b" / "c.txt")

    def test_prefix_confusion_denied(self, temp_dir, validator):
        sibling = temp_dir / "sandboxed"
        sibling.mkdir()
        result = validator.validate_path(str(sibling / "a.txt"))
        assert isinstance(result, Denied)

    def test_blocked_prefix_confusion_not_denied(self, sandbox, validator):
        # ".secretive" shares a string prefix with the blocked ".secret"
        result = validator.validate_path(str(sandbox / ".secretive" / "a.txt"))
        assert isinstance(result, Allowed)

    def test_relative_path_resolved_against_cwd(self, sandbox, validator, monkeypatch):
        monkeypatch.chdir(sandbox)
        result = validator.validate_path("notes/today.md")
        assert result == Allowed(sandbox / "notes" / "today.md")

    def test_tilde_in_request_is_a_plain_name(self, sandbox, validator, monkeypatch):
        monkeypatch.chdir(sandbox)
        result = validator.validate_path("~/a.txt")
        assert result == Allowed(sandbox / "~" / "a.txt")

    def test_deny_wins_over_allow(self, sandbox):
        validator = PathValidator(
            SandboxPolicy(
                allowed_roots=[sandbox, sandbox / "inner"],
                blocked_roots=[sandbox / "inner"],
            )
        )
        result = validator.validate_path(str(sandbox / "inner" / "a.txt"))
        assert isinstance(result, Denied)
        assert result.reason == FORBIDDEN_DIRECTORY

    def test_validation_is_idempotent(self, sandbox, validator):
        first = validator.validate_path(f"{sandbox}/x/../y.txt")
        assert isinstance(first, Allowed)
        second = validator.validate_path(str(first.normalized_path))
        assert second == first

    @pytest.mark.parametrize("raw", ["", "   ", "/tmp/a\x00b.txt"])
    def test_malformed_input_invalid(self, validator, raw):
        assert isinstance(validator.validate_path(raw), Invalid)

    def test_non_string_invalid(self, validator):
        result = validator.validate_path(None)
        assert isinstance(result, Invalid)
        assert "string" in result.reason

    def test_no_allowed_roots_denies_everything(self, sandbox):
        validator = PathValidator(SandboxPolicy(allowed_roots=[], blocked_roots=[]))
        assert isinstance(validator.validate_path(str(sandbox / "a.txt")), Denied)

    def test_does_not_require_existence(self, sandbox, validator):
        result = validator.validate_path(str(sandbox / "missing" / "deep" / "a.txt"))
        assert isinstance(result, Allowed)


class TestSpecScenario:
    """Allow-list {/sandbox}, deny-list {/sandbox/.secret}, nothing on disk."""

    @pytest.fixture
    def scenario(self):
        return PathValidator(
            SandboxPolicy(
                allowed_roots=["/sandbox"],
                blocked_roots=["/sandbox/.secret"],
            )
        )

    @pytest.mark.skipif(os.name == "nt", reason="POSIX paths")
    def test_secret_denied(self, scenario):
        assert isinstance(scenario.validate_path("/sandbox/.secret/x.txt"), Denied)

    @pytest.mark.skipif(os.name == "nt", reason="POSIX paths")
    def test_plain_file_allowed(self, scenario):
        assert scenario.validate_path("/sandbox/a.txt") == Allowed(Path("/sandbox/a.txt"))

    @pytest.mark.skipif(os.name == "nt", reason="POSIX paths")
    def test_escape_denied(self, scenario):
        assert isinstance(scenario.validate_path("/sandbox/../etc/passwd"), Denied)


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
class TestSymlinks:
    """Test symlink handling."""

    @pytest.fixture
    def escape_link(self, temp_dir, sandbox):
        outside = temp_dir / "outside"
        outside.mkdir()
        (outside / "data.txt").write_text("secret", encoding="utf-8")
        link = sandbox / "link_out"
        link.symlink_to(outside, target_is_directory=True)
        return link

    def test_symlink_escape_denied(self, escape_link, validator):
        result = validator.validate_path(str(escape_link / "data.txt"))
        assert isinstance(result, Denied)
        assert result.reason == OUTSIDE_PERMITTED

    def test_symlink_escape_allowed_when_lexical(self, sandbox, escape_link):
        validator = PathValidator(
            SandboxPolicy(allowed_roots=[sandbox], blocked_roots=[], resolve_symlinks=False)
        )
        result = validator.validate_path(str(escape_link / "data.txt"))
        assert result == Allowed(escape_link / "data.txt")

    def test_symlink_inside_sandbox_resolves_to_target(self, sandbox, validator):
        target = sandbox / "real.txt"
        target.write_text("x", encoding="utf-8")
        link = sandbox / "alias.txt"
        link.symlink_to(target)
        assert validator.validate_path(str(link)) == Allowed(target)

    def test_symlink_into_blocked_root_denied(self, sandbox, validator):
        secret = sandbox / ".secret"
        secret.mkdir()
        link = sandbox / "innocent"
        link.symlink_to(secret, target_is_directory=True)
        result = validator.validate_path(str(link / "key.txt"))
        assert isinstance(result, Denied)
        assert result.reason == FORBIDDEN_DIRECTORY

    def test_path_through_blocked_root_denied(self, sandbox, validator):
        public = sandbox / "pub"
        public.mkdir()
        secret = sandbox / ".secret"
        secret.mkdir()
        (secret / "link").symlink_to(public, target_is_directory=True)

        result = validator.validate_path(str(secret / "link" / "a.txt"))
        assert result == Denied(FORBIDDEN_DIRECTORY, str(secret))

    def test_symlinked_blocked_root_denied_when_lexical(self, temp_dir, sandbox):
        real_secret = temp_dir / "secret"
        real_secret.mkdir()
        private = sandbox / "private"
        private.symlink_to(real_secret, target_is_directory=True)
        validator = PathValidator(
            SandboxPolicy(
                allowed_roots=[sandbox, temp_dir],
                blocked_roots=[private],
                resolve_symlinks=False,
            )
        )
        result = validator.validate_path(str(private / "key.txt"))
        assert isinstance(result, Denied)
        assert result.reason == FORBIDDEN_DIRECTORY

    def test_symlinked_root_is_canonicalized(self, temp_dir, sandbox):
        alias = temp_dir / "alias"
        alias.symlink_to(sandbox, target_is_directory=True)
        validator = PathValidator(SandboxPolicy(allowed_roots=[alias], blocked_roots=[]))
        assert validator.get_allowed_roots() == [sandbox]
        assert validator.validate_path(str(alias / "a.txt")) == Allowed(sandbox / "a.txt")


class TestExtensionValidation:
    """Test PathValidator.validate_extension."""

    @pytest.mark.parametrize("name", ["a.txt", "a.TXT", "notes.Md", "Makefile", ".bashrc"])
    def test_permitted(self, validator, name):
        assert validator.validate_extension(f"/x/{name}").is_valid

    def test_rejected_names_extension(self, validator):
        check = validator.validate_extension("/x/tool.EXE")
        assert check.is_valid is False
        assert check.extension == ".exe"
        assert ".exe" in check.reason

    def test_empty_allow_list_means_no_restriction(self):
        validator = PathValidator(SandboxPolicy(allowed_roots=["/x"], allowed_extensions=[]))
        assert validator.validate_extension("/x/a.exe").is_valid


class TestAllowedRoots:
    def test_returns_copy(self, sandbox, validator):
        roots = validator.get_allowed_roots()
        roots.append(Path("/"))
        assert validator.get_allowed_roots() == [sandbox]

    def test_order_preserved(self, temp_dir):
        a, b = temp_dir / "b", temp_dir / "a"
        validator = PathValidator(SandboxPolicy(allowed_roots=[a, b], blocked_roots=[]))
        assert validator.get_allowed_roots() == [a, b]


class TestCheck:
    """Test the raising convenience wrapper."""

    def test_check_returns_normalized_path(self, sandbox, validator):
        assert validator.check(f"{sandbox}/./a.txt") == sandbox / "a.txt"

    def test_check_raises_policy_denied(self, temp_dir, validator):
        with pytest.raises(PolicyDeniedError):
            validator.check(str(temp_dir / "a.txt"))

    def test_check_raises_on_extension(self, sandbox, validator):
        with pytest.raises(PolicyDeniedError, match=".exe"):
            validator.check(str(sandbox / "a.exe"))

    def test_check_skips_extension_when_asked(self, sandbox, validator):
        assert validator.check(str(sandbox / "a.exe"), require_extension=False)

    def test_check_raises_invalid(self, validator):
        with pytest.raises(InvalidPathError):
            validator.check("")


class TestSandboxedFileReader:
    """Test SandboxedFileReader."""

    def test_read_file_success(self, sandbox, reader):
        test_file = sandbox / "test.txt"
        test_file.write_text("hello world", encoding="utf-8")

        path, content = reader.read_file(str(test_file))
        assert path == test_file
        assert content == "hello world"

    def test_read_file_not_found(self, sandbox, reader):
        with pytest.raises(FileNotFoundError):
            reader.read_file(str(sandbox / "missing.txt"))

    def test_read_directory_rejected(self, sandbox, reader):
        (sandbox / "dir.txt").mkdir()
        with pytest.raises(IsADirectoryError):
            reader.read_file(str(sandbox / "dir.txt"))

    def test_read_outside_denied(self, temp_dir, reader):
        outside = temp_dir / "outside.txt"
        outside.write_text("nope", encoding="utf-8")
        with pytest.raises(PolicyDeniedError):
            reader.read_file(str(outside))

    def test_list_directory(self, sandbox, reader):
        (sandbox / "file.txt").write_text("", encoding="utf-8")
        (sandbox / "sub").mkdir()

        path, entries = reader.list_directory(str(sandbox))
        assert path == sandbox
        kinds = {e.name: e.type for e in entries}
        assert kinds == {"file.txt": "file", "sub": "directory"}

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_list_directory_symlink_to_directory_is_file(self, sandbox, reader):
        (sandbox / "sub").mkdir()
        (sandbox / "shortcut").symlink_to(sandbox / "sub", target_is_directory=True)

        _, entries = reader.list_directory(str(sandbox))
        kinds = {e.name: e.type for e in entries}
        assert kinds == {"sub": "directory", "shortcut": "file"}

    def test_list_directory_ignores_extension(self, sandbox, reader):
        odd = sandbox / "bundle.exe"
        odd.mkdir()
        _, entries = reader.list_directory(str(odd))
        assert entries == []

    def test_list_file_rejected(self, sandbox, reader):
        (sandbox / "a.txt").write_text("", encoding="utf-8")
        with pytest.raises(NotADirectoryError):
            reader.list_directory(str(sandbox / "a.txt"))


class TestSandboxedFileWriter:
    """Test SandboxedFileWriter."""

    def test_write_creates_parents(self, sandbox, writer):
        path = writer.write_file(str(sandbox / "a" / "b" / "out.txt"), "data")
        assert path == sandbox / "a" / "b" / "out.txt"
        assert path.read_text(encoding="utf-8") == "data"

    def test_write_overwrites(self, sandbox, writer):
        target = sandbox / "out.txt"
        target.write_text("old content", encoding="utf-8")
        writer.write_file(str(target), "new")
        assert target.read_text(encoding="utf-8") == "new"

    def test_write_denied_does_not_create_parents(self, sandbox, writer):
        with pytest.raises(PolicyDeniedError):
            writer.write_file(str(sandbox / "newdir" / "payload.exe"), "x")
        assert not (sandbox / "newdir").exists()

    def test_write_blocked(self, sandbox, writer):
        with pytest.raises(PolicyDeniedError):
            writer.write_file(str(sandbox / ".secret" / "a.txt"), "x")

    def test_round_trip_unicode(self, sandbox, writer, reader):
        content = "line one\nzweite Zeile\n日本語\n"
        path = writer.write_file(str(sandbox / "notes.md"), content)
        _, read_back = reader.read_file(str(path))
        assert read_back == content

    def test_create_sample_file_default_name(self, sandbox, writer, monkeypatch):
        monkeypatch.chdir(sandbox)
        path, content = writer.create_sample_file()
        assert path == sandbox / "sample.txt"
        assert path.read_text(encoding="utf-8") == content
        assert "Sample file" in content
        assert "Python version" in content

    def test_create_sample_file_checks_extension(self, sandbox, writer, monkeypatch):
        monkeypatch.chdir(sandbox)
        with pytest.raises(PolicyDeniedError):
            writer.create_sample_file("sample.exe")
        assert not (sandbox / "sample.exe").exists()

    def test_create_sample_file_outside_cwd_denied(self, temp_dir, writer, monkeypatch):
        monkeypatch.chdir(temp_dir)
        with pytest.raises(PolicyDeniedError):
            writer.create_sample_file()
