"""Unit tests for the key/value config loader."""

import pytest

from gnss_relay.core.config_loader import ConfigLoader

DEFAULTS = {
    "gps.port": "/dev/ttyUSB0",
    "gps.baud": 4800,
    "gps.even": False,
    "distribution.pacing_s": 0.1,
}


class TestConfigLoader:
    """Test parsing and type coercion."""

    def test_missing_file_returns_defaults(self, tmp_path):
        config = ConfigLoader.load(tmp_path / "absent.txt", DEFAULTS)
        assert config == DEFAULTS
        assert config is not DEFAULTS

    def test_typed_values(self, tmp_path):
        path = tmp_path / "config.txt"
        path.write_text(
            "# receiver\n"
            "gps.port = /dev/ttyAMA0\n"
            "gps.baud = 9600   # faster unit\n"
            "gps.even = yes\n"
            "distribution.pacing_s = 0.25\n"
        )

        config = ConfigLoader.load(path, DEFAULTS)

        assert config["gps.port"] == "/dev/ttyAMA0"
        assert config["gps.baud"] == 9600
        assert config["gps.even"] is True
        assert config["distribution.pacing_s"] == pytest.approx(0.25)

    def test_quoted_and_hex_values(self, tmp_path):
        path = tmp_path / "config.txt"
        path.write_text('gps.port = "/dev/tty USB"\ngps.baud = 0x12C0\n')

        config = ConfigLoader.load(path, DEFAULTS)

        assert config["gps.port"] == "/dev/tty USB"
        assert config["gps.baud"] == 4800

    def test_bad_number_falls_back_to_default(self, tmp_path):
        path = tmp_path / "config.txt"
        path.write_text("gps.baud = fast\ndistribution.pacing_s = soon\n")

        config = ConfigLoader.load(path, DEFAULTS)

        assert config["gps.baud"] == 4800
        assert config["distribution.pacing_s"] == pytest.approx(0.1)

    def test_invalid_lines_skipped(self, tmp_path):
        path = tmp_path / "config.txt"
        path.write_text("no equals sign here\n\ngps.baud = 19200\n")

        config = ConfigLoader.load(path, DEFAULTS)
        assert config["gps.baud"] == 19200

    def test_unknown_keys_guessed(self, tmp_path):
        path = tmp_path / "config.txt"
        path.write_text("extra.flag = on\nextra.count = 3\nextra.ratio = 1.5\nextra.name = box\n")

        config = ConfigLoader.load(path, DEFAULTS)

        assert config["extra.flag"] is True
        assert config["extra.count"] == 3
        assert config["extra.ratio"] == pytest.approx(1.5)
        assert config["extra.name"] == "box"

    def test_strict_drops_unknown_keys(self, tmp_path):
        path = tmp_path / "config.txt"
        path.write_text("extra.flag = on\n")

        config = ConfigLoader.load(path, DEFAULTS, strict=True)
        assert "extra.flag" not in config

    @pytest.mark.asyncio
    async def test_load_async(self, tmp_path):
        path = tmp_path / "config.txt"
        path.write_text("gps.baud = 38400\n")

        config = await ConfigLoader.load_async(path, DEFAULTS)
        assert config["gps.baud"] == 38400
