"""
KMS address variants.

    aws/kms/<region>/keys/<key_id>.json
    aws/kms/<region>/aliases/<alias_name>.json

Key ids are assigned by AWS. Alias names are chosen by the user and are
written without the "alias/" prefix.
"""

from dataclasses import dataclass
from typing import List

from ...address import PhyKey, ResourceAddress


@dataclass(frozen=True)
class KeyAddress(ResourceAddress):
    TEMPLATE = "aws/kms/{region}/keys/{key_id}.json"

    region: str
    key_id: str

    def phy_keys(self) -> List[PhyKey]:
        return [PhyKey("key_id", self, "key_id")]


@dataclass(frozen=True)
class AliasAddress(ResourceAddress):
    TEMPLATE = "aws/kms/{region}/aliases/{alias_name}.json"

    region: str
    alias_name: str


KMS_ADDRESS_TYPES = (KeyAddress, AliasAddress)
