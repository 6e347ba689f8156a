"""
AWS Service Connectors Package.

This package contains one subpackage per AWS service. Each subpackage holds
the address variants, resource documents, operations, read helpers and the
connector class for its service.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Type, Union

from ..connector import Connector, Outbox
from ..errors import ConfigError
from .apigatewayv2 import ApiGatewayV2Connector
from .ecr import EcrConnector
from .iam import IamConnector
from .kms import KmsConnector
from .s3 import S3Connector
from .vpc import VpcConnector

CONNECTOR_TYPES: Dict[str, Type[Connector]] = {
    connector.NAME: connector
    for connector in (
        VpcConnector,
        S3Connector,
        IamConnector,
        EcrConnector,
        ApiGatewayV2Connector,
        KmsConnector,
    )
}


def build_connectors(
    names: Optional[Sequence[str]] = None, prefix: Union[str, Path] = ".", outbox: Outbox = None
) -> List[Connector]:
    """
    Instantiate connectors by name.

    Args:
        names: Connector names; every registered connector when empty
        prefix: Repository root
        outbox: Optional queue receiving progress messages

    Raises:
        ConfigError: If a name is not a registered connector
    """
    selected = list(names) if names else list(CONNECTOR_TYPES)
    unknown = [name for name in selected if name not in CONNECTOR_TYPES]
    if unknown:
        raise ConfigError(
            f"Unknown connector(s): {', '.join(unknown)}; available: {', '.join(sorted(CONNECTOR_TYPES))}",
            {"connectors": ",".join(unknown)},
        )
    return [CONNECTOR_TYPES[name].new(name, prefix, outbox) for name in selected]


__all__ = [
    "CONNECTOR_TYPES",
    "ApiGatewayV2Connector",
    "EcrConnector",
    "IamConnector",
    "KmsConnector",
    "S3Connector",
    "VpcConnector",
    "build_connectors",
]
