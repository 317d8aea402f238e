"""Tests for cli/main.py"""

import json
import sys

import pytest

from tiled_matmul.bench import runner as runner_module
from tiled_matmul.cli.main import _normalize_legacy_args, build_parser, main
from tiled_matmul.device import list_devices


class TestArguments:
    def test_legacy_tokens(self):
        assert _normalize_legacy_args(["device=1", "quiet", "10"]) == [
            "--device",
            "1",
            "--quiet",
            "10",
        ]
        assert _normalize_legacy_args(["-device=2", "--quiet"]) == ["--device", "2", "--quiet"]

    def test_positional_iterations_and_size(self):
        args = build_parser().parse_args(["12", "64"])

        assert args.iterations == 12
        assert args.size == 64
        assert args.device is None
        assert not args.quiet

    def test_defaults(self):
        args = build_parser().parse_args([])

        assert args.iterations == 30
        assert args.size is None
        assert args.seed == 2006
        assert args.tolerance == 1e-6
        assert args.max_listed == 100

    def test_block_size_choices(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--block-size", "8"])


class TestMain:
    def test_run_prints_pass_and_writes_report(self, tmp_path, capsys):
        output = tmp_path / "reports" / "run.json"

        code = main(
            [
                "2",
                "32",
                "--block-size",
                "16",
                "--tolerance",
                "1e-4",
                "quiet",
                "--output",
                str(output),
            ]
        )

        captured = capsys.readouterr().out
        assert code == 0
        assert "Performance=" in captured
        assert "Workgroup = 256" in captured
        assert "Result = PASS" in captured
        report = json.loads(output.read_text())
        assert report["status"] == "PASSED"
        assert report["dimensions"] == {"height_a": 32, "width_a": 32, "width_b": 32}

    def test_failed_verification_is_not_fatal(self, monkeypatch, capsys):
        original = runner_module.DeviceBuffers.download

        def corrupted_download(self):
            c = original(self)
            c.data[0] += 1.0
            return c

        monkeypatch.setattr(runner_module.DeviceBuffers, "download", corrupted_download)

        code = main(["1", "32", "--block-size", "16", "--tolerance", "1e-4"])

        captured = capsys.readouterr().out
        assert code == 0
        assert "Loc(0,0)" in captured
        assert "Total Errors = 1" in captured
        assert "Result = FAIL" in captured

    def test_invalid_device_exits_non_zero(self):
        assert main(["1", "32", f"device={len(list_devices())}"]) == 1

    def test_negative_device_reports_device_count(self, caplog):
        count = len(list_devices())

        with caplog.at_level("ERROR", logger="tiled_matmul"):
            code = main(["1", "32", "--device", "-1"])

        assert code == 1
        assert f"{count} CUDA capable device(s) detected; device=-1" in caplog.text

    def test_nan_tolerance_rejected_before_running(self, monkeypatch, caplog):
        def unexpected_run(self):
            raise AssertionError("run must not start")

        monkeypatch.setattr(runner_module.MatrixMulRunner, "run", unexpected_run)

        with caplog.at_level("ERROR", logger="tiled_matmul"):
            code = main(["2", "64", "--tolerance", "nan"])

        assert code == 1
        assert "Invalid configuration: tolerance must be >= 0" in caplog.text

    def test_invalid_configuration_exits_non_zero(self):
        assert main(["0"]) == 1

    def test_untileable_size_exits_non_zero(self):
        assert main(["1", "40", "--block-size", "16"]) == 1


if __name__ == "__main__":
    pytest.main(sys.argv)
