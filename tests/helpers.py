"""
Shared fixtures for the reconciler tests.

Connectors are built against a temporary repository and a MagicMock boto3
client injected into the client cache, so no test touches the network.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar, Union
from unittest.mock import MagicMock

from botocore.exceptions import ClientError

from src.config import AwsConnectorConfig
from src.reconciler.address import ResourceAddress
from src.reconciler.connector import Connector
from src.reconciler.resource import ResourceModel

C = TypeVar("C", bound=Connector)

ACCOUNT_ID = "123456789012"
REGION = "us-east-1"


def client_error(code: str, operation: str = "Operation", message: str = "error") -> ClientError:
    """Build a botocore ClientError carrying the given error code."""
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def fake_session(clients: Dict[str, Any], account_id: str = ACCOUNT_ID) -> MagicMock:
    """
    A boto3 session whose client() returns the given mocks by service name.

    An "sts" client answering get_caller_identity is added unless one is given.
    """
    clients = dict(clients)
    if "sts" not in clients:
        sts = MagicMock()
        sts.get_caller_identity.return_value = {"Account": account_id}
        clients["sts"] = sts
    session = MagicMock()
    session.client.side_effect = lambda service, **kwargs: clients[service]
    return session


def write_connector_config(prefix: Union[str, Path], **values: Any) -> None:
    """Write the shared aws/config.json, restricting regions to REGION by default."""
    values.setdefault("enabled_regions", [REGION])
    path = Path(prefix) / "aws" / "config.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(values), encoding="utf-8")


def make_connector(cls: Type[C], prefix: Union[str, Path], client: Any, region: Optional[str] = None) -> C:
    """A connector that skips init: config, account and client are set directly."""
    connector = cls(prefix=prefix, session=MagicMock())
    region = region or cls.GLOBAL_REGION or REGION
    connector.config = AwsConnectorConfig(enabled_regions=[region])
    connector.account_id = ACCOUNT_ID
    connector.client_cache[region] = client
    return connector


def write_document(prefix: Union[str, Path], addr: ResourceAddress, model: ResourceModel) -> Path:
    """Write a resource document into the repository at the address's path."""
    path = Path(prefix) / addr.to_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(model.to_bytes())
    return path
