"""
AWS Reconciler Package.

This package reconciles a repository of declarative resource documents with
the live state of an AWS account. Each AWS service is handled by a connector
that the engine drives through a fixed lifecycle:

1. Discover: list live resources and walk the repository
2. Read: fetch the current state of each resource
3. Diff: compare desired and current documents
4. Plan: turn the difference into a list of operations
5. Execute: apply each operation and record the ids AWS assigns

The engine lives in `reconcile`, the connector contract in `connector` and the
service implementations under `connectors`. This module only re-exports the
leaf building blocks so it can be imported from anywhere without cycles.
"""

from .address import ResourceAddress, parse_address, path_matches_filter
from .errors import (
    AddressParseError,
    ConfigError,
    ImmutableFieldError,
    InvalidOpError,
    MissingOutputError,
    OpExecError,
    OutputStoreError,
    ReconcileError,
    ReconcilerError,
    RemoteError,
    ResourceSyntaxError,
)
from .op import ConnectorOp, OpExecResponse, PlanResponseElement, SkeletonResponse
from .resource import ResourceModel
from .tags import apply_tag_diff, tag_diff

__all__ = [
    "AddressParseError",
    "ConfigError",
    "ConnectorOp",
    "ImmutableFieldError",
    "InvalidOpError",
    "MissingOutputError",
    "OpExecError",
    "OpExecResponse",
    "OutputStoreError",
    "PlanResponseElement",
    "ReconcileError",
    "ReconcilerError",
    "RemoteError",
    "ResourceAddress",
    "ResourceModel",
    "ResourceSyntaxError",
    "SkeletonResponse",
    "apply_tag_diff",
    "parse_address",
    "path_matches_filter",
    "tag_diff",
]
