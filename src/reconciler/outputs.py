"""
Output Store Module.

Outputs are the values a cloud provider assigns when an operation runs (ids,
ARNs, URIs). They are kept in sidecar files that mirror the repository layout
under a separate root:

    <prefix>/aws/vpc/us-east-1/vpcs/main.json            resource document
    <prefix>/outputs/aws/vpc/us-east-1/vpcs/main.json    its outputs

Each sidecar is a flat JSON object of string keys to string values.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterator, Optional, Tuple, Union

from ..utils import setup_logging
from .errors import AddressParseError, OutputStoreError
from .resolver import phy_to_virt
from .types import Outputs, StoredOutputs

if TYPE_CHECKING:
    from .address import ResourceAddress

logger = setup_logging()

OUTPUTS_DIR = "outputs"

AddressParser = Callable[[str], "ResourceAddress"]


class OutputStore:
    """Sidecar-file store mapping (address, key) to cloud-assigned values."""

    def __init__(self, prefix: Union[str, Path]):
        self.prefix = Path(prefix)
        self.root = self.prefix / OUTPUTS_DIR

    def sidecar_path(self, addr: "ResourceAddress") -> Path:
        return self.root / addr.to_path()

    def exists(self, addr: "ResourceAddress") -> bool:
        return self.sidecar_path(addr).is_file()

    def load(self, addr: "ResourceAddress") -> StoredOutputs:
        """
        Read every output recorded for an address.

        Returns:
            The stored outputs, or an empty dict if none were recorded

        Raises:
            OutputStoreError: If the sidecar exists but is not a JSON object of strings
        """
        return self._read(self.sidecar_path(addr))

    def get(self, addr: "ResourceAddress", key: str) -> Optional[str]:
        return self.load(addr).get(key)

    def put(self, addr: "ResourceAddress", outputs: Outputs) -> StoredOutputs:
        """
        Merge outputs into an address's sidecar.

        A None value deletes the key. If no keys remain the sidecar is removed.

        Returns:
            The outputs now stored for the address
        """
        path = self.sidecar_path(addr)
        merged = self._read(path)
        for key, value in outputs.items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value

        if not merged:
            if path.exists():
                path.unlink()
                logger.debug(f"Removed output sidecar {path}")
            return merged

        self._write(path, merged)
        logger.debug(f"Stored outputs for {addr.to_path()}: {sorted(merged)}")
        return merged

    def entries(self, parse: AddressParser) -> Iterator[Tuple["ResourceAddress", StoredOutputs]]:
        """
        Yield every sidecar whose path parses as an address, in path order.

        Sidecars that belong to another connector's address space are skipped.
        """
        if not self.root.is_dir():
            return
        for path in sorted(p for p in self.root.rglob("*") if p.is_file()):
            relative = path.relative_to(self.root).as_posix()
            try:
                addr = parse(relative)
            except AddressParseError:
                continue
            yield addr, self._read(path)

    def phy_to_virt(self, addr: "ResourceAddress", parse: AddressParser) -> Optional["ResourceAddress"]:
        return phy_to_virt(self, addr, parse)

    def _read(self, path: Path) -> StoredOutputs:
        if not path.is_file():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise OutputStoreError(f"Unreadable output sidecar {path}: {e}", {"path": str(path)})
        if not isinstance(data, dict) or not all(isinstance(v, str) for v in data.values()):
            raise OutputStoreError(f"Output sidecar {path} is not a map of strings", {"path": str(path)})
        return data

    def _write(self, path: Path, outputs: StoredOutputs) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(outputs, f, indent=4, sort_keys=True)
                f.write("\n")
            os.replace(tmp_name, path)
        except OSError as e:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise OutputStoreError(f"Failed to write output sidecar {path}: {e}", {"path": str(path)})
