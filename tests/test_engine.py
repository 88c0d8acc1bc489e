"""
Tests for the ignore engine: queries, enforcement flags, caching and cloning
"""

import copy
import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor

import pytest

from agent_tools.ignore import IgnoreEngine, AccessDenied, RuleFileParseError, RuleScope


@pytest.fixture
def engine():
    return IgnoreEngine(global_ignore_file=None)


def test_no_rule_files(engine, workspace, touch):
    test_file = touch(workspace / "test.txt", "content")

    assert not engine.is_ignored(test_file)
    assert not engine.is_ignored(workspace)


def test_agentignore_file(engine, workspace, write_rules, touch):
    write_rules(workspace, "*.secret\nsecrets/\n")
    normal = touch(workspace / "normal.txt")
    secret = touch(workspace / "test.secret")
    nested = touch(workspace / "secrets" / "file.txt")

    assert not engine.is_ignored(normal)
    assert engine.is_ignored(secret)
    assert engine.is_ignored(workspace / "secrets")
    assert engine.is_ignored(nested)


def test_relative_paths_that_do_not_exist(engine, workspace, write_rules, monkeypatch):
    write_rules(workspace, "*.secret\nsecrets/\n")
    monkeypatch.chdir(workspace)

    assert not engine.is_ignored("a.txt")
    assert engine.is_ignored("x.secret")
    assert engine.is_ignored("secrets/file.txt")


def test_nested_agentignore(engine, workspace, write_rules, touch):
    child = workspace / "child"
    write_rules(workspace, "*.root\n")
    write_rules(child, "*.sub\n")

    assert engine.is_ignored(touch(workspace / "test.root"))
    assert engine.is_ignored(touch(child / "test.root"))
    assert engine.is_ignored(touch(child / "test.sub"))
    assert not engine.is_ignored(touch(child / "normal.txt"))
    # A rule file does not reach above its own directory
    assert not engine.is_ignored(touch(workspace / "test.sub"))


def test_negation_does_not_cross_files(engine, workspace, write_rules, touch):
    child = workspace / "child"
    write_rules(workspace, "*.root\n")
    write_rules(child, "!keep.root\n")

    assert engine.is_ignored(touch(child / "keep.root"))


def test_negation_within_one_file(engine, workspace, write_rules, touch):
    write_rules(workspace, "*.log\n!keep.log\n")

    assert engine.is_ignored(touch(workspace / "debug.log"))
    assert not engine.is_ignored(touch(workspace / "keep.log"))


def test_directory_rule_file_does_not_apply_to_directory_itself(engine, workspace, write_rules):
    sub = workspace / "blocked"
    write_rules(sub, "*\n")

    assert not engine.is_ignored(sub)
    assert engine.is_ignored(sub / "anything.txt")


def test_symlink_is_checked_at_its_target(engine, workspace, write_rules, touch):
    if not hasattr(os, "symlink"):
        pytest.skip("symlinks unavailable")
    write_rules(workspace / "vault", "*\n")
    target = touch(workspace / "vault" / "key.txt")
    link = workspace / "link.txt"
    try:
        link.symlink_to(target)
    except OSError:
        pytest.skip("cannot create symlinks here")

    assert engine.is_ignored(link)


def test_global_rules_apply_at_any_depth(global_file, workspace, touch):
    engine = IgnoreEngine(global_ignore_file=global_file("*.secret\n"))

    assert engine.global_rules is not None
    assert engine.global_rules.source.scope is RuleScope.GLOBAL
    assert engine.is_ignored(touch(workspace / "x.secret"))
    assert engine.is_ignored(touch(workspace / "a" / "b" / "c" / "x.secret"))
    assert not engine.is_ignored(touch(workspace / "a" / "x.txt"))


def test_global_match_is_reported_as_global(global_file, workspace, write_rules, touch):
    write_rules(workspace, "*.secret\n")
    engine = IgnoreEngine(global_ignore_file=global_file("*.secret\n"))

    result = engine.check(touch(workspace / "x.secret"))

    assert result.should_ignore
    assert result.source.scope is RuleScope.GLOBAL


def test_missing_global_file_is_not_an_error(tmp_path, workspace, touch):
    engine = IgnoreEngine(global_ignore_file=tmp_path / "nope" / "ignore")

    assert engine.global_rules is None
    assert not engine.is_ignored(touch(workspace / "x.secret"))


@pytest.mark.skipif(sys.platform in ("win32", "darwin"), reason="XDG layout")
def test_default_global_location(tmp_path, workspace, touch):
    config = tmp_path / "home" / ".config" / "agent" / "ignore"
    config.parent.mkdir(parents=True)
    config.write_text("*.secret\n", encoding="utf-8")

    engine = IgnoreEngine()

    assert engine.global_ignore_file == config
    assert engine.is_ignored(touch(workspace / "x.secret"))


def test_global_file_env_override(tmp_path, workspace, touch, monkeypatch):
    override = tmp_path / "custom-ignore"
    override.write_text("*.private\n", encoding="utf-8")
    monkeypatch.setenv("AGENT_IGNORE_GLOBAL_FILE", str(override))

    engine = IgnoreEngine()

    assert engine.global_ignore_file == override
    assert engine.is_ignored(touch(workspace / "notes.private"))


def test_broken_global_file_fails_strict_construction(global_file):
    path = global_file(b"\xff\xfe*.secret\n")

    with pytest.raises(RuleFileParseError) as excinfo:
        IgnoreEngine(global_ignore_file=path)

    assert excinfo.value.path == path


def test_lenient_construction_survives_broken_global_file(global_file, workspace,
                                                          write_rules, touch, caplog):
    path = global_file(b"\xff\xfe*.secret\n")
    write_rules(workspace, "*.local\n")

    with caplog.at_level(logging.WARNING, logger="agent_tools.ignore.engine"):
        engine = IgnoreEngine.lenient(global_ignore_file=path)

    assert engine.global_rules is None
    assert "Global ignore rules disabled" in caplog.text
    assert engine.is_ignored(touch(workspace / "x.local"))
    assert not engine.is_ignored(touch(workspace / "x.secret"))


def test_broken_directory_file_fails_open_for_that_directory_only(engine, workspace,
                                                                  write_rules, touch):
    sub = workspace / "sub"
    write_rules(workspace, "*.root\n")
    sub.mkdir()
    (sub / ".agentignore").write_bytes(b"\xff\xfe*.secret\n")

    assert not engine.is_ignored(touch(sub / "x.secret"))
    assert engine.is_ignored(touch(sub / "x.root"))
    assert engine.cache.get_stats()['parse_failures'] >= 1


def test_validate_path(engine, workspace, write_rules, touch):
    rule_file = write_rules(workspace, "blocked.txt\n")
    allowed = touch(workspace / "allowed.txt")
    blocked = touch(workspace / "blocked.txt")

    engine.validate_path(allowed)
    with pytest.raises(AccessDenied) as excinfo:
        engine.validate_path(blocked)

    assert excinfo.value.path == blocked
    assert excinfo.value.source.origin_file == rule_file
    assert str(blocked) in str(excinfo.value)


def test_filter_paths_keeps_order_and_type(engine, workspace, write_rules, touch):
    write_rules(workspace, "*.ignored\n")
    names = ["b.txt", "a.ignored", "c.txt", "d.ignored", "a.txt"]
    paths = [str(touch(workspace / name)) for name in names]

    filtered = engine.filter_paths(paths)

    assert filtered == [paths[0], paths[2], paths[4]]
    assert all(isinstance(p, str) for p in filtered)
    assert filtered == [p for p in paths if not engine.is_ignored(p)]


def test_filter_paths_accepts_generators(engine, workspace, write_rules, touch):
    write_rules(workspace, "*.ignored\n")
    keep = touch(workspace / "keep.txt")
    drop = touch(workspace / "remove.ignored")

    assert engine.filter_paths(p for p in (keep, drop)) == [keep]


def test_enforcement_args_without_rule_files(engine, workspace):
    assert engine.get_enforcement_args(workspace) == ["--no-ignore"]


def test_enforcement_args_order(global_file, workspace, write_rules):
    gfile = global_file("*.secret\n")
    root_rules = write_rules(workspace, "*.root\n")
    mid_rules = write_rules(workspace / "a", "*.mid\n")
    working_dir = workspace / "a" / "b"
    working_dir.mkdir()
    engine = IgnoreEngine(global_ignore_file=gfile)

    args = engine.get_enforcement_args(working_dir)

    assert args == [
        "--no-ignore",
        f"--ignore-file={gfile.resolve()}",
        f"--ignore-file={mid_rules}",
        f"--ignore-file={root_rules}",
    ]


def test_enforcement_args_include_working_dir_itself(engine, workspace, write_rules):
    own = write_rules(workspace, "*.x\n")

    assert engine.get_enforcement_args(workspace) == ["--no-ignore", f"--ignore-file={own}"]


def test_enforcement_args_have_no_duplicates(workspace, write_rules):
    own = write_rules(workspace, "*.x\n")
    engine = IgnoreEngine(global_ignore_file=own)

    args = engine.get_enforcement_args(workspace)

    assert args == ["--no-ignore", f"--ignore-file={own}"]


def test_enforcement_args_skip_missing_global_file(tmp_path, workspace):
    engine = IgnoreEngine(global_ignore_file=tmp_path / "missing")

    assert engine.get_enforcement_args(workspace) == ["--no-ignore"]


def test_enforcement_args_are_deterministic(engine, workspace, write_rules):
    write_rules(workspace, "*.x\n")
    write_rules(workspace / "sub", "*.y\n")

    first = engine.get_enforcement_args(workspace / "sub")
    assert engine.get_enforcement_args(workspace / "sub") == first


def test_cache_only_holds_directories_with_rule_files(engine, workspace, write_rules, touch):
    write_rules(workspace, "*.x\n")
    path = touch(workspace / "sub" / "deeper" / "file.txt")

    engine.is_ignored(path)

    assert workspace in engine.cache
    assert workspace / "sub" not in engine.cache
    assert workspace / "sub" / "deeper" not in engine.cache


def test_clear_cache_observes_edited_rules(engine, workspace, write_rules, touch):
    write_rules(workspace, "*.a\n")
    file_a = touch(workspace / "x.a")
    file_b = touch(workspace / "x.b")
    assert engine.is_ignored(file_a)
    assert not engine.is_ignored(file_b)

    write_rules(workspace, "*.b\n")
    # No automatic invalidation
    assert engine.is_ignored(file_a)

    engine.clear_cache()

    assert len(engine.cache) == 0
    assert not engine.is_ignored(file_a)
    assert engine.is_ignored(file_b)


def test_clear_cache_keeps_global_rules(global_file, workspace, touch):
    engine = IgnoreEngine(global_ignore_file=global_file("*.secret\n"))
    rules = engine.global_rules

    engine.clear_cache()

    assert engine.global_rules is rules
    assert engine.is_ignored(touch(workspace / "x.secret"))


def test_deleted_rule_file_stops_applying(engine, workspace, write_rules, touch):
    rule_file = write_rules(workspace, "*.a\n")
    target = touch(workspace / "x.a")
    assert engine.is_ignored(target)

    rule_file.unlink()

    assert not engine.is_ignored(target)


def test_clone_shares_global_rules_with_fresh_cache(global_file, workspace,
                                                    write_rules, touch):
    write_rules(workspace, "*.x\n")
    engine = IgnoreEngine(global_ignore_file=global_file("*.secret\n"))
    engine.is_ignored(touch(workspace / "a.x"))
    assert len(engine.cache) == 1

    for clone in (engine.clone(), copy.copy(engine)):
        assert clone.global_rules is engine.global_rules
        assert clone.cache is not engine.cache
        assert len(clone.cache) == 0
        assert clone.is_ignored(workspace / "a.x")
        assert clone.is_ignored(workspace / "b.secret")

    # Clones never feed the cloned engine's cache
    engine.clear_cache()
    engine.clone().is_ignored(workspace / "a.x")
    assert len(engine.cache) == 0


def test_injected_cache_is_used(workspace, write_rules, touch):
    from agent_tools.ignore import DirectoryRuleCache

    cache = DirectoryRuleCache()
    engine = IgnoreEngine(global_ignore_file=None, cache=cache)
    write_rules(workspace, "*.x\n")

    engine.is_ignored(touch(workspace / "a.x"))

    assert engine.cache is cache
    assert workspace in cache


def test_concurrent_queries_agree(engine, workspace, write_rules, touch):
    write_rules(workspace, "*.secret\n")
    for i in range(5):
        write_rules(workspace / f"d{i}", f"*.d{i}\n")
    paths = []
    for i in range(5):
        paths.append(touch(workspace / f"d{i}" / "x.secret"))
        paths.append(touch(workspace / f"d{i}" / f"x.d{i}"))
        paths.append(touch(workspace / f"d{i}" / "x.txt"))
    expected = [not p.name.endswith(".txt") for p in paths]

    with ThreadPoolExecutor(max_workers=8) as pool:
        for _ in range(10):
            assert list(pool.map(engine.is_ignored, paths)) == expected


def test_stats(global_file, workspace, write_rules, touch):
    engine = IgnoreEngine(global_ignore_file=global_file("*.secret\n*.key\n"))
    write_rules(workspace, "*.x\n")
    engine.is_ignored(touch(workspace / "a.x"))

    stats = engine.get_stats()

    assert stats['global_patterns'] == 2
    assert stats['ignore_filename'] == ".agentignore"
    assert stats['cache']['size'] == 1


def test_escaped_space_does_not_disable_rule_file(engine, workspace, write_rules, touch):
    write_rules(workspace, "*.secret\nnotes\\ \n")

    assert engine.is_ignored(touch(workspace / "x.secret"))
    assert engine.cache.get_stats()['parse_failures'] == 0


def test_large_rule_file_still_applies(engine, workspace, write_rules, touch):
    lines = ["*.secret"] + [f"generated-{i}.tmp" for i in range(10000)]
    write_rules(workspace, "\n".join(lines) + "\n")

    assert engine.is_ignored(touch(workspace / "x.secret"))
    assert engine.is_ignored(touch(workspace / "generated-9999.tmp"))
    assert not engine.is_ignored(touch(workspace / "x.txt"))


def test_excluded_directory_hides_reincluded_file(engine, workspace, write_rules, touch):
    write_rules(workspace, "secrets/\n!secrets/keep.txt\n")

    assert engine.is_ignored(touch(workspace / "secrets" / "keep.txt"))
    assert engine.get_enforcement_args(workspace)[-1] == f"--ignore-file={workspace / '.agentignore'}"
