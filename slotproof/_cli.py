import json
from typing import Optional, TextIO

import click

from .chain import assemble
from .errors import SlotProofError
from .external import RecordedSource
from .params import (ADDRESS_BYTES, DEFAULT_MAX_HEADER_BYTES, DEFAULT_MAX_NODE_BYTES, DEFAULT_MAX_NODES,
                     DEFAULT_MAX_STORAGE_NODES, KEY_BYTES)
from .types import Address, Bytes32
from .util import decode_hex, encode_hex
from .witness import check_witness, public_inputs, shape, witness_from_obj, witness_to_obj


def _hex_param(value: str, param_hint: str) -> bytes:
    try:
        return decode_hex(value)
    except ValueError:
        raise click.BadParameter("%r is not hex" % value, param_hint=param_hint)


@click.group()
def cli():
    """slotproof - prove an ethereum storage slot value, and shape the proof into a circuit witness
    """


@cli.command()
@click.argument('recording', type=click.Path(exists=True, dir_okay=False))
@click.argument('output', type=click.File('wt'))
@click.option('--address', envvar='TARGET_ACCOUNT', required=True, help='account address, 20 bytes hex')
@click.option('--slot', envvar='STORAGE_SLOT', required=True, help='storage slot key, hex, up to 32 bytes')
@click.option('--block', envvar='BLOCK_NUMBER', type=click.INT, default=None,
              help='block number, defaults to the recorded block')
@click.option('--max-nodes', envvar='MAX_NODES', type=click.INT, default=DEFAULT_MAX_NODES, show_default=True,
              help='account proof node capacity')
@click.option('--max-storage-nodes', envvar='MAX_STORAGE_NODES', type=click.INT, default=DEFAULT_MAX_STORAGE_NODES,
              show_default=True, help='storage proof node capacity')
@click.option('--max-node-bytes', envvar='MAX_NODE_BYTES', type=click.INT, default=DEFAULT_MAX_NODE_BYTES,
              show_default=True)
@click.option('--max-header-bytes', envvar='MAX_HEADER_BYTES', type=click.INT, default=DEFAULT_MAX_HEADER_BYTES,
              show_default=True)
@click.option('--public-out', type=click.File('wt'), default=None,
              help='also write the public inputs of the witness to this file')
def gen(recording: str, output: TextIO, address: str, slot: str, block: Optional[int],
        max_nodes: int, max_storage_nodes: int, max_node_bytes: int, max_header_bytes: int,
        public_out: Optional[TextIO]):
    """Verify a recorded storage proof and write the circuit witness

    RECORDING json file with the eth_getBlockByNumber result under "block"
     and the eth_getProof result under "proof"

    OUTPUT file to write the witness json to
    """
    slot_key = _hex_param(slot, '--slot')
    if len(slot_key) > KEY_BYTES:
        raise click.BadParameter("slot key longer than 32 bytes", param_hint='--slot')
    key = Bytes32(slot_key.rjust(KEY_BYTES, b'\x00'))
    addr_bytes = _hex_param(address, '--address')
    if len(addr_bytes) != ADDRESS_BYTES:
        raise click.BadParameter("address must be 20 bytes", param_hint='--address')
    addr = Address(addr_bytes)

    try:
        src = RecordedSource.load(recording)
        if block is None:
            block = src.block_number()

        click.echo("loading block %d..." % block)
        header = src.block_header(block)
        account_proof = src.account_proof(addr, block)
        storage_proof = src.storage_proof(addr, key, block)

        click.echo("verifying proof chain...")
        chain = assemble(header, addr, key, account_proof, storage_proof)
        click.echo("block hash:   " + encode_hex(chain.block_hash))
        click.echo("state root:   " + encode_hex(chain.state_root))
        click.echo("storage root: " + encode_hex(chain.storage_root))
        click.echo("slot value:   " + encode_hex(chain.slot_value))

        recorded = src.recorded_slot_value(key)
        if recorded is not None and recorded != bytes(chain.slot_value):
            raise click.ClickException("proven slot value differs from the recorded eth_getStorageAt value "
                                       + encode_hex(recorded))

        click.echo("shaping witness...")
        record = shape(chain, max_nodes, max_node_bytes, max_header_bytes, max_storage_nodes)
    except SlotProofError as e:
        raise click.ClickException(str(e))
    except (KeyError, TypeError, ValueError) as e:
        raise click.ClickException("malformed recording %s: %r" % (recording, e))

    json.dump(witness_to_obj(record), output)
    if public_out is not None:
        json.dump(public_inputs(record).to_obj(), public_out)
    click.echo("done! witness root: " + encode_hex(record.hash_tree_root()))


@cli.command()
@click.argument('input', type=click.File('rt'))
def verify(input: TextIO):
    """Verify a witness file outside of the circuit
    \f
    by unpadding the proofs and verifying the chain again"""
    try:
        obj = json.load(input)
    except ValueError as e:
        raise click.ClickException("witness file is not valid JSON: %s" % e)
    try:
        record = witness_from_obj(obj)
        chain = check_witness(record)
    except SlotProofError as e:
        raise click.ClickException(str(e))
    click.echo("witness ok, slot %s of %s at block %s holds %s" % (
        encode_hex(chain.slot_key), encode_hex(chain.address), encode_hex(chain.block_hash),
        encode_hex(chain.slot_value)))
