"""
S3 address variants.

    aws/s3/<region>/buckets/<name>.json

Bucket names are chosen by the user, so a bucket address has no
cloud-assigned segments.
"""

from dataclasses import dataclass

from ...address import ResourceAddress


@dataclass(frozen=True)
class BucketAddress(ResourceAddress):
    TEMPLATE = "aws/s3/{region}/buckets/{name}.json"

    region: str
    name: str


S3_ADDRESS_TYPES = (BucketAddress,)
