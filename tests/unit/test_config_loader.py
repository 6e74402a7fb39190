"""Tests for layered .env loading."""

import os

import pytest

from basketball_api.config import ConfigLoader, ConfigOrigin, LayerStatus


class TestLayerPrecedence:
    """File layers and the process environment resolve in a fixed order."""

    def test_environment_file_beats_base_file(self, env_dir):
        root = env_dir(**{".env": "PORT=3000\n", ".env.production": "PORT=4000\n"})

        result = ConfigLoader(root, "production", environ={}).load()

        assert result.values["PORT"] == "4000"
        assert result.origins["PORT"] == ConfigOrigin.ENVIRONMENT_FILE

    def test_process_environment_beats_every_file(self, env_dir):
        root = env_dir(**{
            ".env": "PORT=3000\n",
            ".env.production": "PORT=4000\n",
            ".env.local": "PORT=4500\n",
        })

        result = ConfigLoader(root, "production", environ={"PORT": "5000"}).load()

        assert result.values["PORT"] == "5000"
        assert result.origins["PORT"] == ConfigOrigin.PROCESS_ENVIRONMENT

    def test_local_file_beats_environment_file(self, env_dir):
        root = env_dir(**{
            ".env": "API_BASE_URL=http://base\n",
            ".env.staging": "API_BASE_URL=http://staging\n",
            ".env.local": "API_BASE_URL=http://local\n",
        })

        result = ConfigLoader(root, "staging", environ={}).load()

        assert result.values["API_BASE_URL"] == "http://local"
        assert result.origins["API_BASE_URL"] == ConfigOrigin.LOCAL_FILE

    def test_lower_layer_fills_keys_missing_from_higher_layers(self, env_dir):
        root = env_dir(**{
            ".env": "PORT=3000\nHOST=0.0.0.0\n",
            ".env.test": "PORT=4000\n",
        })

        result = ConfigLoader(root, "test", environ={}).load()

        assert result.values["HOST"] == "0.0.0.0"
        assert result.origins["HOST"] == ConfigOrigin.BASE_FILE

    def test_other_environment_files_are_ignored(self, env_dir):
        root = env_dir(**{".env": "PORT=3000\n", ".env.production": "PORT=4000\n"})

        result = ConfigLoader(root, "development", environ={}).load()

        assert result.values["PORT"] == "3000"

    def test_empty_environment_value_still_overrides(self, env_dir):
        root = env_dir(**{".env": "JWT_SECRET=from-file\n"})

        result = ConfigLoader(root, "test", environ={"JWT_SECRET": ""}).load()

        assert result.values["JWT_SECRET"] == ""


class TestFileParsing:
    def test_comments_blank_lines_and_quotes(self, env_dir):
        root = env_dir(**{".env": (
            "# database settings\n"
            "\n"
            "DATABASE_URL=\"sqlite+aiosqlite:///./app.db\"\n"
            "CORS_ORIGINS='http://a.example,http://b.example'\n"
            "LOG_LEVEL=debug\n"
        )})

        result = ConfigLoader(root, "test", environ={}).load()

        assert result.values == {
            "DATABASE_URL": "sqlite+aiosqlite:///./app.db",
            "CORS_ORIGINS": "http://a.example,http://b.example",
            "LOG_LEVEL": "debug",
        }
        assert result.malformed_lines == ()

    def test_malformed_lines_are_reported_and_skipped(self, env_dir, caplog):
        root = env_dir(**{".env": "PORT=3000\nNOT_A_PAIR\nHOST=127.0.0.1\n"})

        with caplog.at_level("WARNING"):
            result = ConfigLoader(root, "test", environ={}).load()

        assert result.values == {"PORT": "3000", "HOST": "127.0.0.1"}
        assert len(result.malformed_lines) == 1
        malformed = result.malformed_lines[0]
        assert malformed.line_number == 2
        assert malformed.content == "NOT_A_PAIR"
        assert "Invalid line" in caplog.text

    def test_values_are_kept_as_written(self, env_dir):
        root = env_dir(**{".env": (
            "SESSION_SECRET=f3a9c1e7b5d2 #468091a7c3e5\n"
            'JWT_SECRET="abc\\ndef\\\\ghi0123456"\n'
            'GREETING="x" y\n'
            "SINGLE='it''s'\n"
            "EQUALS=a=b=c\n"
            "SPACED =  padded value  \n"
        )})

        result = ConfigLoader(root, "test", environ={}).load()

        assert result.values == {
            "SESSION_SECRET": "f3a9c1e7b5d2 #468091a7c3e5",
            "JWT_SECRET": "abc\\ndef\\\\ghi0123456",
            "GREETING": '"x" y',
            "SINGLE": "it''s",
            "EQUALS": "a=b=c",
            "SPACED": "padded value",
        }
        assert result.malformed_lines == ()

    def test_only_a_matching_quote_pair_is_stripped(self, env_dir):
        root = env_dir(**{".env": (
            "MIXED=\"abc'\n"
            "OPEN=\"abc\n"
            "EMPTY=\"\"\n"
            "LONE=\"\n"
        )})

        result = ConfigLoader(root, "test", environ={}).load()

        assert result.values["MIXED"] == "\"abc'"
        assert result.values["OPEN"] == '"abc'
        assert result.values["EMPTY"] == ""
        assert result.values["LONE"] == '"'

    def test_line_numbers_account_for_blank_lines(self, env_dir):
        root = env_dir(**{".env": "\n\n# comment\nPORT=3000\n\nBROKEN\n=no-key\n"})

        result = ConfigLoader(root, "test", environ={}).load()

        assert result.values == {"PORT": "3000"}
        assert [(m.line_number, m.content) for m in result.malformed_lines] == [
            (6, "BROKEN"),
            (7, "=no-key"),
        ]

    def test_first_binding_in_a_file_wins(self, env_dir):
        root = env_dir(**{".env": "PORT=3000\nPORT=3001\n"})

        result = ConfigLoader(root, "test", environ={}).load()

        assert result.values["PORT"] == "3000"


class TestLayerReports:
    def test_missing_files_are_skipped(self, tmp_path):
        result = ConfigLoader(tmp_path, "test", environ={"PORT": "3000"}).load()

        assert result.values == {"PORT": "3000"}
        assert [report.status for report in result.layers] == [LayerStatus.MISSING] * 3
        assert [report.layer.filename for report in result.layers] == [
            ".env",
            ".env.test",
            ".env.local",
        ]

    def test_unreadable_file_is_reported_and_skipped(self, env_dir, caplog):
        root = env_dir(**{".env.test": "PORT=4000\n"})
        (root / ".env").write_bytes(b"PORT=\xff\xfe3000\n")

        with caplog.at_level("ERROR"):
            result = ConfigLoader(root, "test", environ={}).load()

        statuses = {report.layer.filename: report.status for report in result.layers}
        assert statuses[".env"] == LayerStatus.UNREADABLE
        assert statuses[".env.test"] == LayerStatus.LOADED
        assert result.values["PORT"] == "4000"
        assert "Error loading configuration file" in caplog.text

    def test_loaded_key_counts_exclude_shadowed_keys(self, env_dir):
        root = env_dir(**{".env": "PORT=3000\nHOST=0.0.0.0\n", ".env.test": "PORT=4000\n"})

        result = ConfigLoader(root, "test", environ={}).load()

        counts = {report.layer.filename: report.keys_loaded for report in result.layers}
        assert counts[".env.test"] == 1
        assert counts[".env"] == 1


class TestLoaderPurity:
    def test_loading_twice_gives_identical_maps(self, env_dir):
        root = env_dir(**{
            ".env": "PORT=3000\nHOST=0.0.0.0\n",
            ".env.test": "PORT=4000\n",
            ".env.local": "LOG_LEVEL=debug\n",
        })
        environ = {"DATABASE_URL": "sqlite+aiosqlite:///:memory:"}

        first = ConfigLoader(root, "test", environ=environ).load()
        second = ConfigLoader(root, "test", environ=environ).load()

        assert dict(first.values) == dict(second.values)
        assert dict(first.origins) == dict(second.origins)

    def test_process_environment_is_not_modified(self, env_dir, monkeypatch):
        monkeypatch.delenv("BASKETBALL_TEST_ONLY_KEY", raising=False)
        root = env_dir(**{".env": "BASKETBALL_TEST_ONLY_KEY=value\n"})

        ConfigLoader(root, "test").load()

        assert "BASKETBALL_TEST_ONLY_KEY" not in os.environ

    def test_result_map_is_read_only(self, env_dir):
        root = env_dir(**{".env": "PORT=3000\n"})
        result = ConfigLoader(root, "test", environ={}).load()

        with pytest.raises(TypeError):
            result.values["PORT"] = "1"
