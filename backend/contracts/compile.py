"""
Smart contract compiler — compiles PyTeal contracts to TEAL v8.

Usage:
    python -m contracts.compile                  # Compiles every contract package
    python -m contracts.compile genesis_pass     # Compiles one contract
"""
import importlib
import json
import logging
import os
import sys

from pyteal import compileTeal, Mode

logger = logging.getLogger(__name__)

CONTRACTS_DIR = os.path.dirname(__file__)
TEAL_VERSION = 8  # boxes need v8


def compile_programs(module) -> tuple[str, str]:
    """Return (approval_teal, clear_teal) for an imported contract module."""
    approval = compileTeal(module.approval_program(), mode=Mode.Application, version=TEAL_VERSION)
    clear = compileTeal(module.clear_program(), mode=Mode.Application, version=TEAL_VERSION)
    return approval, clear


def contract_info(module, contract_name: str) -> dict:
    """Deployment metadata (schema, methods, box sizes) exported by a contract module."""
    info = {
        "name": getattr(module, "CONTRACT_NAME", contract_name),
        "description": getattr(module, "CONTRACT_DESCRIPTION", ""),
        "version": getattr(module, "CONTRACT_VERSION", "1.0.0"),
        "global_uints": getattr(module, "GLOBAL_UINTS", 0),
        "global_bytes": getattr(module, "GLOBAL_BYTES", 0),
        "local_uints": getattr(module, "LOCAL_UINTS", 0),
        "local_bytes": getattr(module, "LOCAL_BYTES", 0),
        "methods": getattr(module, "CONTRACT_METHODS", []),
    }
    boxes = {
        name.lower(): getattr(module, name)
        for name in ("PASS_BOX_SIZE", "WALLET_BOX_SIZE")
        if hasattr(module, name)
    }
    if boxes:
        info["boxes"] = boxes
    return info


def compile_contract(contract_name: str) -> bool:
    """Compile one contract package and write approval/clear TEAL plus contract_info.json."""
    contract_dir = os.path.join(CONTRACTS_DIR, contract_name)
    if not os.path.exists(os.path.join(contract_dir, "contract.py")):
        logger.warning(f"Skipping '{contract_name}' — no contract.py found")
        return False

    module = importlib.import_module(f"contracts.{contract_name}.contract")
    if not hasattr(module, "approval_program") or not hasattr(module, "clear_program"):
        logger.error(f"'{contract_name}' must export approval_program() and clear_program()")
        return False

    approval_teal, clear_teal = compile_programs(module)

    compiled_dir = os.path.join(contract_dir, "compiled")
    os.makedirs(compiled_dir, exist_ok=True)
    with open(os.path.join(compiled_dir, "approval.teal"), "w") as f:
        f.write(approval_teal)
    with open(os.path.join(compiled_dir, "clear.teal"), "w") as f:
        f.write(clear_teal)
    with open(os.path.join(compiled_dir, "contract_info.json"), "w") as f:
        json.dump(contract_info(module, contract_name), f, indent=2)

    logger.info(f"✅ '{contract_name}' compiled to {os.path.relpath(compiled_dir)}")
    return True


def compile_all() -> None:
    for entry in sorted(os.listdir(CONTRACTS_DIR)):
        if os.path.isdir(os.path.join(CONTRACTS_DIR, entry)) and entry != "__pycache__":
            compile_contract(entry)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")

    # Allow running from backend/ directory
    backend_dir = os.path.dirname(CONTRACTS_DIR)
    if backend_dir not in sys.path:
        sys.path.insert(0, backend_dir)

    if len(sys.argv) > 1:
        compile_contract(sys.argv[1])
    else:
        compile_all()
