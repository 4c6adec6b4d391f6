"""CLI smoke tests."""

import json

import pytest
from click.testing import CliRunner

from zkboo.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


def test_version(runner):
    result = runner.invoke(cli, ["version"], obj={})
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_circuits_table(runner):
    result = runner.invoke(cli, ["circuits"], obj={})
    assert result.exit_code == 0
    assert "age_check" in result.output
    assert "masked_xor" in result.output


def test_circuit_key(runner):
    result = runner.invoke(cli, ["circuits", "--key", "sum3"], obj={})
    assert result.exit_code == 0
    assert "fingerprint" in result.output
    assert runner.invoke(cli, ["circuits", "--key", "nope"], obj={}).exit_code == 1


def test_config_show(runner):
    result = runner.invoke(cli, ["config", "show"], obj={})
    assert result.exit_code == 0
    assert "repetitions" in result.output
    assert "soundness_error" in result.output


def test_prove_then_verify(runner, tmp_path):
    path = tmp_path / "age.json"
    result = runner.invoke(cli, ["prove", "age_check", "-p", "25", "-r", "6", "-o", str(path)],
                           obj={})
    assert result.exit_code == 0, result.output
    fields = json.loads(path.read_text())
    assert fields[8] == "age_check"
    assert fields[2] == [0xFFFFFFFF]

    result = runner.invoke(cli, ["verify", str(path)], obj={})
    assert result.exit_code == 0, result.output
    assert "valid" in result.output


def test_prove_public_inputs_and_hex(runner, tmp_path):
    path = tmp_path / "threshold.json"
    result = runner.invoke(cli, ["prove", "threshold", "-p", "0x100", "-u", "255",
                                 "-r", "4", "--full", "-o", str(path)], obj={})
    assert result.exit_code == 0, result.output
    fields = json.loads(path.read_text())
    assert fields[1] == [255]
    assert fields[9] is False


def test_prove_bad_witness(runner, tmp_path):
    result = runner.invoke(cli, ["prove", "age_check", "-r", "2",
                                 "-o", str(tmp_path / "x.json")], obj={})
    assert result.exit_code == 1
    assert not (tmp_path / "x.json").exists()


def test_prove_word_out_of_range(runner):
    result = runner.invoke(cli, ["prove", "age_check", "-p", str(1 << 32)], obj={})
    assert result.exit_code == 2


def test_verify_tampered(runner, tmp_path):
    path = tmp_path / "age.json"
    runner.invoke(cli, ["prove", "age_check", "-p", "30", "-r", "6", "-o", str(path)], obj={})
    fields = json.loads(path.read_text())
    fields[2] = [0]
    path.write_text(json.dumps(fields))
    result = runner.invoke(cli, ["verify", str(path)], obj={})
    assert result.exit_code == 1


def test_verify_malformed(runner, tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("[1, 2, 3]")
    result = runner.invoke(cli, ["verify", str(path)], obj={})
    assert result.exit_code == 1
    assert "Malformed" in result.output


def test_demo(runner):
    result = runner.invoke(cli, ["demo", "-r", "4"], obj={})
    assert result.exit_code == 0, result.output
    assert "age > 19" in result.output
