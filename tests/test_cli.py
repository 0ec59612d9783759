import json

from click.testing import CliRunner

from slotproof._cli import cli
from slotproof.util import encode_hex

from .mpt_fixtures import ONE_ETHER, make_world, recording


def write_recording(tmp_path, slot=0, value=0x1234 * ONE_ETHER):
    w = make_world(slot=slot)
    path = tmp_path / "recording.json"
    path.write_text(json.dumps(recording(w, value)))
    return w, str(path)


def test_gen_and_verify(tmp_path):
    w, rec = write_recording(tmp_path)
    out = str(tmp_path / "witness.json")
    runner = CliRunner()

    result = runner.invoke(cli, ["gen", rec, out, "--address", encode_hex(w.address), "--slot", "0x0",
                                 "--max-header-bytes", "700"])
    assert result.exit_code == 0, result.output
    assert "done! witness root: 0x" in result.output
    assert "slot value:   0x" + (0x1234 * ONE_ETHER).to_bytes(length=32, byteorder='big').hex() in result.output

    with open(out) as f:
        obj = json.load(f)
    assert obj["max_nodes"] == 10
    assert obj["max_node_bytes"] == 532
    assert obj["max_header_bytes"] == 700
    assert obj["max_storage_nodes"] == 9

    result = runner.invoke(cli, ["verify", out])
    assert result.exit_code == 0, result.output
    assert "witness ok" in result.output


def test_gen_from_env(tmp_path):
    w, rec = write_recording(tmp_path, slot=7, value=1)
    out = str(tmp_path / "witness.json")
    env = {
        "TARGET_ACCOUNT": encode_hex(w.address),
        "STORAGE_SLOT": "0x07",
        "MAX_HEADER_BYTES": "700",
    }
    result = CliRunner().invoke(cli, ["gen", rec, out], env=env)
    assert result.exit_code == 0, result.output
    assert "slot value:   0x" + "00" * 31 + "01" in result.output


def test_gen_capacity_exceeded(tmp_path):
    w, rec = write_recording(tmp_path)
    out = str(tmp_path / "witness.json")
    result = CliRunner().invoke(cli, ["gen", rec, out, "--address", encode_hex(w.address), "--slot", "0x0",
                                      "--max-header-bytes", "700", "--max-nodes", "1"])
    assert result.exit_code == 1
    assert "account proof node count needs" in result.output


def test_gen_wrong_block(tmp_path):
    w, rec = write_recording(tmp_path)
    out = str(tmp_path / "witness.json")
    result = CliRunner().invoke(cli, ["gen", rec, out, "--address", encode_hex(w.address), "--slot", "0x0",
                                      "--block", "1"])
    assert result.exit_code == 1
    assert "not block 1" in result.output


def test_gen_bad_address(tmp_path):
    _, rec = write_recording(tmp_path)
    out = str(tmp_path / "witness.json")
    result = CliRunner().invoke(cli, ["gen", rec, out, "--address", "0x1234", "--slot", "0x0"])
    assert result.exit_code == 2
    assert "address must be 20 bytes" in result.output


def test_verify_tampered(tmp_path):
    w, rec = write_recording(tmp_path)
    out = tmp_path / "witness.json"
    runner = CliRunner()
    result = runner.invoke(cli, ["gen", rec, str(out), "--address", encode_hex(w.address), "--slot", "0x0",
                                 "--max-header-bytes", "700"])
    assert result.exit_code == 0, result.output

    obj = json.loads(out.read_text())
    obj["witness"]["slot_value"] = "0x" + "ff" * 32
    out.write_text(json.dumps(obj))
    result = runner.invoke(cli, ["verify", str(out)])
    assert result.exit_code == 1
    assert "slot_value" in result.output


def test_gen_public_inputs(tmp_path):
    w, rec = write_recording(tmp_path, slot=1, value=42)
    out = str(tmp_path / "witness.json")
    pub = tmp_path / "public.json"
    result = CliRunner().invoke(cli, ["gen", rec, out, "--address", encode_hex(w.address), "--slot", "0x1",
                                      "--max-header-bytes", "700", "--public-out", str(pub)])
    assert result.exit_code == 0, result.output

    obj = json.loads(pub.read_text())
    assert obj["account_address"] == encode_hex(w.address)
    assert obj["account_value"] == encode_hex(w.account_value)
    assert obj["storage_key"] == encode_hex(w.slot)
    assert obj["slot_value"] == "0x" + "00" * 31 + "2a"
    assert "account_proof_nodes" not in obj


def test_gen_recorded_value_mismatch(tmp_path):
    w, rec = write_recording(tmp_path, slot=1, value=43)
    out = str(tmp_path / "witness.json")
    result = CliRunner().invoke(cli, ["gen", rec, out, "--address", encode_hex(w.address), "--slot", "0x1",
                                      "--max-header-bytes", "700"])
    assert result.exit_code == 1
    assert "differs from the recorded eth_getStorageAt value" in result.output


def test_gen_bad_hex(tmp_path):
    w, rec = write_recording(tmp_path)
    out = str(tmp_path / "witness.json")
    result = CliRunner().invoke(cli, ["gen", rec, out, "--address", encode_hex(w.address), "--slot", "0xzz"])
    assert result.exit_code == 2
    assert "is not hex" in result.output
    assert not isinstance(result.exception, ValueError)


def test_gen_malformed_recording(tmp_path):
    w, rec = write_recording(tmp_path)
    out = str(tmp_path / "witness.json")
    args = ["--address", encode_hex(w.address), "--slot", "0x0"]

    obj = json.loads(open(rec).read())
    del obj["proof"]["accountProof"]
    broken = tmp_path / "broken.json"
    broken.write_text(json.dumps(obj))
    result = CliRunner().invoke(cli, ["gen", str(broken), out] + args)
    assert result.exit_code == 1
    assert "malformed recording" in result.output

    del obj["proof"]
    broken.write_text(json.dumps(obj))
    result = CliRunner().invoke(cli, ["gen", str(broken), out] + args)
    assert result.exit_code == 1
    assert "needs a \"block\" and a \"proof\" entry" in result.output

    broken.write_text("{not json")
    result = CliRunner().invoke(cli, ["gen", str(broken), out] + args)
    assert result.exit_code == 1
    assert "not valid JSON" in result.output


def test_verify_malformed_witness(tmp_path):
    path = tmp_path / "witness.json"
    path.write_text(json.dumps({"max_nodes": 10}))
    result = CliRunner().invoke(cli, ["verify", str(path)])
    assert result.exit_code == 1
    assert "malformed witness object" in result.output

    path.write_text("[")
    result = CliRunner().invoke(cli, ["verify", str(path)])
    assert result.exit_code == 1
    assert "not valid JSON" in result.output
