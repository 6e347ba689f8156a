"""
Type definitions for the AWS Reconciler.

This module contains the shared type aliases used by the engine and the
connectors, so signatures say what a dict or a client actually holds.
"""

# AWS Client Types - Using Any for flexibility with boto3 clients
#
# boto3 does not provide static type stubs for service clients, and the methods
# available on each client are dynamically generated at runtime. Using 'Any' here
# lets us annotate client variables for clarity without false positives from
# static type checkers.
from typing import Any, Dict, List, Optional, Union

# Specific AWS client types
EC2Client = Any
S3Client = Any
IAMClient = Any
ECRClient = Any
ApiGatewayV2Client = Any
KMSClient = Any
STSClient = Any

# Tags are an unordered mapping of string keys to string values
Tags = Dict[str, str]

# AWS list-shaped tags, e.g. [{"Key": "env", "Value": "prod"}]
AwsTagList = List[Dict[str, str]]

# Outputs produced by an operation; a None value records deletion of the key
Outputs = Dict[str, Optional[str]]

# Outputs as persisted in the Output Store
StoredOutputs = Dict[str, str]

# Opaque JSON trees, used for policy documents
JsonValue = Union[str, int, float, bool, List[Any], Dict[str, Any], None]
PolicyDocument = Dict[str, Any]

# Report types
ReportDict = Dict[str, Any]
