"""Core contract variants, init payload and dev / production step lists."""
from eth_abi import decode

from bridge_bootstrapper.config.abis import CORE_CONTRACT_PROXY_ABI
from bridge_bootstrapper.setup.core_contract import (
    CORE_CONTRACT_KEY,
    CoreContractHandle,
    CoreContractInitData,
    CoreContractVariant,
    build_core_contract_steps,
    core_contract_init_data,
)
from bridge_bootstrapper.setup.sequencer import RecordingObserver, StepSequencer

VERIFIER = "0x000000000000000000000000000000000000ABcD"
INIT_TYPES = ["address", "uint256", "uint256", "address", "uint256", "uint256", "int256", "uint256"]


def test_variant_follows_mode():
    assert CoreContractVariant.for_mode(True) is CoreContractVariant.SOVEREIGN
    assert CoreContractVariant.for_mode(False) is CoreContractVariant.VALIDITY
    assert CoreContractVariant.SOVEREIGN.artifact != CoreContractVariant.VALIDITY.artifact


def test_init_data_layout():
    data = CoreContractInitData(program_hash=0x41, config_hash=0xC0, verifier=VERIFIER).encode()

    eic, program_hash, aggregator, verifier, config_hash, state_root, block_number, block_hash = decode(INIT_TYPES, data)
    assert int(eic, 16) == 0
    assert (program_hash, aggregator, config_hash) == (0x41, 0, 0xC0)
    assert verifier.lower() == VERIFIER.lower()
    assert (state_root, block_number, block_hash) == (0, -1, 0)
    # block number -1 is all ones in its word
    assert data[6 * 32:7 * 32] == b"\xff" * 32


def test_dev_init_data_has_no_verifier(dev_ctx):
    assert int(core_contract_init_data(dev_ctx).verifier, 16) == 0


def test_prod_init_data_uses_configured_verifier(prod_ctx):
    assert core_contract_init_data(prod_ctx).verifier == prod_ctx.config.verifier_address


def test_dev_steps_initialize_and_register_deployer(dev_ctx, chains):
    l1, _ = chains
    observer = RecordingObserver()

    book = StepSequencer("core_contract", observer).run(build_core_contract_steps(dev_ctx))

    assert observer.step_names() == ["deploy_core_contract", "initialize_core_contract"]
    assert l1.invoked() == ["initialize", "registerOperator"]
    request, _ = l1.sent[-1]
    assert request.calldata == (dev_ctx.l1.address,)
    # implementation, then unsafe proxy pointing at it
    deploys = [r for r, _ in l1.sent if r.method is None]
    assert [r.artifact.name for r in deploys] == ["StarknetSovereign", "UnsafeProxy"]
    assert book[CORE_CONTRACT_KEY].hex == l1.receipts[list(l1.receipts)[1]].contract_address


def test_dev_initialize_carries_program_and_config_hash(dev_ctx, chains):
    l1, _ = chains
    StepSequencer("core_contract").run(build_core_contract_steps(dev_ctx))

    init = next(r for r, _ in l1.sent if r.method == "initialize")
    program_hash, config_hash = dev_ctx.bridge_init_configs()
    assert init.calldata[0] == CoreContractInitData(program_hash, config_hash).encode()


def test_prod_steps_hand_over_to_operator_and_multisig(prod_ctx, chains):
    l1, _ = chains
    observer = RecordingObserver()

    StepSequencer("core_contract", observer).run(build_core_contract_steps(prod_ctx))

    assert observer.step_names() == [
        "deploy_core_contract",
        "add_implementation_core_contract",
        "upgrade_to_core_contract",
        "register_operator",
        "nominate_governor",
        "nominate_governor_proxy",
    ]
    assert l1.invoked() == [
        "addImplementation",
        "upgradeTo",
        "registerOperator",
        "starknetNominateNewGovernor",
        "proxyNominateNewGovernor",
    ]
    deploys = [r for r, _ in l1.sent if r.method is None]
    assert [r.artifact.name for r in deploys] == ["Starknet", "Proxy"]
    assert deploys[1].calldata == (0,)
    nominate = next(r for r, _ in l1.sent if r.method == "proxyNominateNewGovernor")
    assert nominate.abi == CORE_CONTRACT_PROXY_ABI
    assert nominate.calldata == (prod_ctx.config.l1_multisig_address,)


def test_handle_reads_addresses_from_book(dev_ctx):
    book = StepSequencer("core_contract").run(build_core_contract_steps(dev_ctx))
    handle = CoreContractHandle.from_book(dev_ctx, book)

    assert handle.variant is CoreContractVariant.SOVEREIGN
    assert handle.address == book[CORE_CONTRACT_KEY].hex
    assert handle.address != handle.implementation
