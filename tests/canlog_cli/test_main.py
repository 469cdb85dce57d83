"""
Tests for the canlog-decode entry point (canlog_cli.main): argument handling,
path overrides, metrics output and exit codes for run-level failures.
"""

import pytest

from canlog_cli import main as main_module
from canlog_cli.main import build_parser, main


@pytest.fixture(autouse=True)
def no_coloredlogs(mocker):
    """Keeps main() from reconfiguring the root logger during tests."""
    return mocker.patch("canlog_cli.main.configure_logger")


@pytest.fixture
def workspace(tmp_path):
    data = tmp_path / "log.csv"
    data.write_text("0,5;1;Rx;2B4;2;0F A3\n", encoding="utf-8")
    output = tmp_path / "decoded.csv"
    config = tmp_path / "config.yaml"
    config.write_text(
        f"data_file: {data}\n"
        "localtime: '10:00:00'\n"
        f"output_file: {output}\n"
        "timezone: UTC\n"
        "messages:\n"
        "  - can_id: 2B4\n"
        "    start_bit: 4\n"
        "    bit_length: 12\n"
        "    dlc: 2\n"
        "    message: Throttle\n"
        "    method: MSB\n",
        encoding="utf-8",
    )
    return tmp_path, config, data, output


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.config is None
    assert args.data_file is None
    assert args.output is None
    assert args.log_level is None
    assert args.metrics_file is None


def test_parser_log_level_case_insensitive():
    assert build_parser().parse_args(["--log-level", "warning"]).log_level == "WARNING"


def test_parser_rejects_unknown_log_level(capsys):
    with pytest.raises(SystemExit) as excinfo:
        build_parser().parse_args(["--log-level", "verbose"])
    assert excinfo.value.code == 2
    assert "invalid choice" in capsys.readouterr().err


def test_main_success(workspace, no_coloredlogs):
    _, config, _, output = workspace

    assert main(["--config", str(config), "--log-level", "DEBUG"]) == 0

    no_coloredlogs.assert_called_once_with("DEBUG")
    lines = output.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    # no date configured: today, in the configured zone
    assert lines[1].split(";")[0].endswith("T10:00:00.500+00:00")
    assert lines[1].split(";")[1:] == [
        "2B4",
        "2",
        "4",
        "12",
        "0F A3",
        "0000111110100011",
        "111110100011",
        "4003",
        "4003.000000",
        "Throttle",
    ]


def test_main_config_from_env(workspace, monkeypatch):
    _, config, _, output = workspace
    monkeypatch.setenv("CANLOG_CONFIG", str(config))

    assert main([]) == 0
    assert output.exists()


def test_main_overrides_paths(workspace):
    tmp_path, config, _, output = workspace
    other_data = tmp_path / "other.csv"
    other_data.write_text("0;1;Rx;2B4;2;FF FF\n0;1;Rx;2B4;2;00 00\n", encoding="utf-8")
    other_output = tmp_path / "other_out.csv"

    exit_code = main(
        ["--config", str(config), "--data-file", str(other_data), "--output", str(other_output)]
    )

    assert exit_code == 0
    assert not output.exists()
    assert len(other_output.read_text(encoding="utf-8").splitlines()) == 3


def test_main_writes_metrics(workspace):
    tmp_path, config, _, _ = workspace
    metrics_file = tmp_path / "canlog.prom"

    assert main(["--config", str(config), "--metrics-file", str(metrics_file)]) == 0

    text = metrics_file.read_text(encoding="utf-8")
    assert "canlog_rows_written_total" in text
    assert "canlog_frames_total" in text


def test_main_missing_config(tmp_path, caplog):
    assert main(["--config", str(tmp_path / "absent.yaml")]) == 1
    assert "Cannot read config file" in caplog.text


def test_main_missing_data_file(workspace, caplog):
    tmp_path, config, _, output = workspace
    assert main(["--config", str(config), "--data-file", str(tmp_path / "gone.csv")]) == 1
    assert "Cannot read data file" in caplog.text
    assert not output.exists()


def test_main_unwritable_output(workspace, caplog):
    tmp_path, config, _, _ = workspace
    assert main(["--config", str(config), "--output", str(tmp_path)]) == 1
    assert "Cannot create output file" in caplog.text


def test_main_reports_run_errors_through_module_logger(workspace, mocker):
    _, config, _, _ = workspace
    mocker.patch.object(main_module, "run_decode", side_effect=main_module.CanLogError("boom"))
    error = mocker.patch.object(main_module.logger, "error")

    assert main(["--config", str(config)]) == 1
    error.assert_called_once_with("boom")
