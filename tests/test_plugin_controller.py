from __future__ import annotations

from cli.tui import ConsoleHost, run_session
from core.lookup import BlameService
from core.plugin import DISABLED_MESSAGE, ENABLED_MESSAGE, BlamePlugin, build_plugin
from schemas.config import BlameConfig, KeymapConfig

SHOW_OK = "Jane Doe | 2 days ago | Fix bug"


class CountingGit:
    def __init__(self, blame: str = "1a2b3c4d (Jane 2024 1) x", show: str = SHOW_OK) -> None:
        self.blame = blame
        self.show = show
        self.blame_calls = 0
        self.show_calls = 0

    def blame_line(self, file_path: str, line: int) -> str:
        self.blame_calls += 1
        return self.blame

    def show_commit(self, commit_hash: str, *, cwd: str | None = None) -> str:
        self.show_calls += 1
        return self.show


def _plugin(file_path: str = "/w/src/a.py", *, git: CountingGit | None = None, config: BlameConfig | None = None):
    host = ConsoleHost(file_path=file_path, line=3)
    git = git or CountingGit()
    plugin = build_plugin(host, config or BlameConfig(), git=git)
    return plugin, host, git


def test_cursor_hold_renders_three_styled_chunks() -> None:
    plugin, host, _ = _plugin()
    plugin.on_cursor_hold()
    chunks = host.annotations[3]
    assert [c.text for c in chunks] == ["Jane Doe ", "2 days ago ", "Fix bug"]
    assert [c.highlight for c in chunks] == ["GitBlameAuthor", "GitBlameDate", "GitBlameMsg"]


def test_insert_mode_suppresses_lookup() -> None:
    plugin, host, git = _plugin()
    host.current_mode = "i"
    plugin.on_cursor_hold()
    assert plugin.blame_current_line() is False
    assert git.blame_calls == 0
    assert host.annotations == {}


def test_unnamed_root_and_bin_buffers_are_skipped() -> None:
    for path in ("", "/usr/local/bin/tool", "/top.py"):
        plugin, host, git = _plugin(path)
        plugin.blame_current_line()
        assert git.blame_calls == 0


def test_no_blame_data_clears_line_and_renders_nothing() -> None:
    plugin, host, _ = _plugin(git=CountingGit(blame=""))
    host.annotations[3] = []
    assert plugin.blame_current_line() is False
    assert 3 not in host.annotations


def test_toggle_disables_and_reenables() -> None:
    plugin, host, git = _plugin()
    plugin.blame_current_line()
    assert host.annotations

    assert plugin.toggle() is False
    assert host.annotations == {}
    assert host.notifications == [DISABLED_MESSAGE]
    # Forced lookups are ignored while disabled
    host.line = 5
    assert plugin.blame_current_line() is False
    assert git.blame_calls == 1

    assert plugin.toggle() is True
    assert host.notifications[-1] == ENABLED_MESSAGE
    assert plugin.blame_current_line() is True


def test_cursor_moved_clears_every_annotation() -> None:
    plugin, host, _ = _plugin()
    plugin.blame_current_line()
    host.line = 4
    plugin.blame_current_line()
    assert set(host.annotations) == {3, 4}
    plugin.on_cursor_moved()
    assert host.annotations == {}


def test_show_cache_popup() -> None:
    plugin, host, _ = _plugin()
    assert plugin.show_cache() == ["Cache empty"]
    plugin.blame_current_line()
    assert plugin.show_cache() == ["/w/src/a.py:3 = Jane Doe 2 days ago Fix bug"]
    assert len(host.popups) == 2


def test_keymaps_are_configurable() -> None:
    config = BlameConfig(keymaps=KeymapConfig(toggle="<F5>"))
    plugin, host, _ = _plugin(config=config)
    maps = plugin.keymaps()
    assert set(maps) == {"<F5>", "<Leader>gBc", "<Leader>gBC"}
    maps["<F5>"].action()
    assert plugin.enabled is False


def test_scripted_session_maps_commands_to_actions() -> None:
    git = CountingGit()
    host = ConsoleHost(file_path="/w/src/a.py")
    plugin = BlamePlugin(host, BlameService(git=git), BlameConfig())
    unknown = run_session(
        plugin,
        host,
        [
            "goto 2",
            "hold",
            "mode i",
            "goto 3",
            "hold",
            "mode n",
            "move 3",
            "hold",
            "key <Leader>gBC",
            "clear-cache",
            "blame",
            "toggle",
            "bogus",
            "goto x",
            "key <nope>",
        ],
    )
    assert unknown == ["bogus", "goto x", "key <nope>"]
    # Line 2, line 3, and line 3 again after clear-cache
    assert git.blame_calls == 3
    assert host.popups[-1] == [
        "/w/src/a.py:2 = Jane Doe 2 days ago Fix bug",
        "/w/src/a.py:3 = Jane Doe 2 days ago Fix bug",
    ]
    assert host.notifications == [DISABLED_MESSAGE]
    assert host.annotations == {}
