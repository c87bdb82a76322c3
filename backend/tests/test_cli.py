"""
命令行入口测试

uvicorn.run 被 mock 掉，不会真正启动服务器。
"""

from unittest.mock import patch

import pytest

from cat_cache import cli
from cat_cache.config import ORIGIN_URL, Settings
from cat_cache.errors import ConfigurationError


class TestParseArgs:
    """参数解析测试"""

    def test_short_options(self, tmp_path):
        settings = cli.parse_args(["-h", "127.0.0.1", "-p", "8080", "-c", str(tmp_path / "cache")])

        assert settings.host == "127.0.0.1"
        assert settings.port == 8080
        assert settings.cache_dir == tmp_path / "cache"

    def test_long_options(self, tmp_path):
        settings = cli.parse_args(["--host", "0.0.0.0", "--port", "3000", "--cache", str(tmp_path)])

        assert settings.host == "0.0.0.0"
        assert settings.port == 3000

    def test_relative_cache_path_is_resolved(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = cli.parse_args(["-h", "localhost", "-p", "1", "-c", "cache"])

        assert settings.cache_dir.is_absolute()
        assert settings.cache_dir == (tmp_path / "cache").resolve()

    @pytest.mark.parametrize("argv", [
        [],
        ["-h", "localhost", "-p", "8080"],
        ["-h", "localhost", "-c", "cache"],
        ["-p", "8080", "-c", "cache"],
    ])
    def test_missing_required_option_exits(self, argv):
        with pytest.raises(SystemExit) as exc_info:
            cli.parse_args(argv)
        assert exc_info.value.code == 2

    def test_port_must_be_integer(self):
        with pytest.raises(SystemExit):
            cli.parse_args(["-h", "localhost", "-p", "http", "-c", "cache"])

    def test_help_is_long_option_only(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.parse_args(["--help"])

        assert exc_info.value.code == 0
        assert "--cache" in capsys.readouterr().out


class TestEnvironment:
    """环境变量配置测试"""

    ARGV = ["-h", "127.0.0.1", "-p", "8080", "-c", "cache"]

    def test_defaults(self, monkeypatch):
        for name in ("CAT_CACHE_ORIGIN_TIMEOUT", "CAT_CACHE_LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)
        settings = cli.parse_args(self.ARGV)

        assert settings.origin_timeout == 10.0
        assert settings.log_level == "info"

    def test_valid_values(self, monkeypatch):
        monkeypatch.setenv("CAT_CACHE_ORIGIN_TIMEOUT", "2.5")
        monkeypatch.setenv("CAT_CACHE_ORIGIN_URL", "http://origin.local")
        monkeypatch.setenv("CAT_CACHE_LOG_LEVEL", "WARNING")
        settings = cli.parse_args(self.ARGV)

        assert settings.origin_timeout == 2.5
        assert settings.origin_url == "http://origin.local"
        assert settings.log_level == "warning"

    @pytest.mark.parametrize("raw", ["soon", "0", "-1", "inf", "nan"])
    def test_bad_timeout_exits_with_message(self, monkeypatch, capsys, raw):
        """测试：非法超时值给出错误信息并以 2 退出，而不是抛出 ValueError"""
        monkeypatch.setenv("CAT_CACHE_ORIGIN_TIMEOUT", raw)

        with pytest.raises(SystemExit) as exc_info:
            cli.parse_args(self.ARGV)

        assert exc_info.value.code == 2
        assert "CAT_CACHE_ORIGIN_TIMEOUT" in capsys.readouterr().err

    @pytest.mark.parametrize("raw", ["WARN", "verbose", ""])
    def test_bad_log_level_exits_with_message(self, monkeypatch, capsys, raw):
        """测试：uvicorn 不接受的日志级别（如 WARN）在启动前被拒绝"""
        monkeypatch.setenv("CAT_CACHE_LOG_LEVEL", raw)

        with pytest.raises(SystemExit) as exc_info:
            cli.parse_args(self.ARGV)

        assert exc_info.value.code == 2
        assert "CAT_CACHE_LOG_LEVEL" in capsys.readouterr().err

    def test_from_args_with_explicit_environ(self):
        with pytest.raises(ConfigurationError):
            Settings.from_args("h", 1, "cache", environ={"CAT_CACHE_ORIGIN_TIMEOUT": "x"})


class TestMain:
    """启动流程测试"""

    def test_creates_cache_dir_and_runs_server(self, tmp_path):
        cache_dir = tmp_path / "nested" / "cache"

        with patch.object(cli.uvicorn, "run") as run:
            code = cli.main(["-h", "127.0.0.1", "-p", "8080", "-c", str(cache_dir)])

        assert code == 0
        assert cache_dir.is_dir()
        run.assert_called_once()
        app = run.call_args.args[0]
        assert app.state.cache_store.cache_dir == cache_dir
        assert app.state.origin_fetcher.base_url == ORIGIN_URL.rstrip("/")
        assert run.call_args.kwargs["host"] == "127.0.0.1"
        assert run.call_args.kwargs["port"] == 8080

    def test_cache_dir_failure_aborts_startup(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")

        with patch.object(cli.uvicorn, "run") as run:
            code = cli.main(["-h", "127.0.0.1", "-p", "8080", "-c", str(blocker)])

        assert code == 1
        run.assert_not_called()
