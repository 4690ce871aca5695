"""
Contract artifact loading.

L1 artifacts are forge or hardhat JSON files carrying an ``abi`` and a
``bytecode`` (either a hex string or ``{"object": "0x..."}``). L2 artifacts
are passed to starknet.py as raw JSON text, so only their paths are resolved
here.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class L1Artifact:
    name: str
    abi: list[dict[str, Any]]
    bytecode: str


@dataclass(frozen=True)
class L2LegacyArtifact:
    name: str
    path: Path

    def read(self) -> str:
        return self.path.read_text()


@dataclass(frozen=True)
class L2SierraArtifact:
    name: str
    sierra_path: Path
    casm_path: Path

    def read(self) -> tuple[str, str]:
        return self.sierra_path.read_text(), self.casm_path.read_text()


class ArtifactStore:
    """Resolves artifact files under a base directory."""

    def __init__(self, base_dir: Path | str):
        self.base_dir = Path(base_dir)

    def _resolve(self, relative: str) -> Path:
        path = self.base_dir / relative
        if not path.exists():
            raise FileNotFoundError(f"Missing contract artifact: {path}")
        return path

    def l1(self, relative: str) -> L1Artifact:
        path = self._resolve(relative)
        data = json.loads(path.read_text())
        abi = data.get("abi")
        bytecode = data.get("bytecode")
        if isinstance(bytecode, dict):
            bytecode = bytecode.get("object")
        if abi is None or not bytecode:
            raise ValueError(f"{path} does not contain both 'abi' and 'bytecode'")
        if not bytecode.startswith("0x"):
            bytecode = "0x" + bytecode
        return L1Artifact(name=path.stem, abi=abi, bytecode=bytecode)

    def l2_legacy(self, relative: str) -> L2LegacyArtifact:
        path = self._resolve(relative)
        return L2LegacyArtifact(name=path.stem, path=path)

    def l2_sierra(self, sierra: str, casm: str) -> L2SierraArtifact:
        sierra_path = self._resolve(sierra)
        casm_path = self._resolve(casm)
        return L2SierraArtifact(
            name=sierra_path.name.split(".")[0],
            sierra_path=sierra_path,
            casm_path=casm_path,
        )
