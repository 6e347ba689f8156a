"""
Tag Reconciliation Module.

AWS tag APIs are split into tag and untag calls. A single tag diff produces
both sides, so an Update...Tags operation can apply them against one
consistent snapshot of old and new tags.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .types import AwsTagList, Tags


def tag_diff(old_tags: Mapping[str, str], new_tags: Mapping[str, str]) -> Tuple[List[str], Tags]:
    """
    Determine which tag keys to remove and which pairs to set.

    A key whose value changed is expressed as a set, never as remove-then-add.

    Args:
        old_tags: Tags currently on the resource
        new_tags: Desired tags

    Returns:
        Tuple of (keys_to_remove, pairs_to_set)
    """
    keys_to_remove = [key for key in old_tags if key not in new_tags]
    pairs_to_set = {key: value for key, value in new_tags.items() if old_tags.get(key) != value}
    return keys_to_remove, pairs_to_set


def apply_tag_diff(tags: Mapping[str, str], keys_to_remove: Iterable[str], pairs_to_set: Mapping[str, str]) -> Tags:
    """Apply a tag diff to a tag map: remove first, then set."""
    result = dict(tags)
    for key in keys_to_remove:
        result.pop(key, None)
    result.update(pairs_to_set)
    return result


def to_aws_tags(tags: Mapping[str, str], key_name: str = "Key", value_name: str = "Value") -> AwsTagList:
    """Convert a tag map to the list shape most AWS APIs expect, sorted by key."""
    return [{key_name: key, value_name: tags[key]} for key in sorted(tags)]


def from_aws_tags(
    tag_list: Optional[Iterable[Dict[str, str]]], key_name: str = "Key", value_name: str = "Value"
) -> Tags:
    """Convert an AWS tag list back to a tag map. Empty values are preserved."""
    result: Tags = {}
    for tag in tag_list or []:
        key = tag.get(key_name)
        if key is None:
            continue
        result[key] = tag.get(value_name) or ""
    return result


def describe_tag_diff(old_tags: Mapping[str, str], new_tags: Mapping[str, str]) -> str:
    """Human-readable summary of a tag change, one line per key."""
    keys_to_remove, pairs_to_set = tag_diff(old_tags, new_tags)
    lines = [f"  - {key}" for key in sorted(keys_to_remove)]
    for key in sorted(pairs_to_set):
        if key in old_tags:
            lines.append(f"  ~ {key}: {old_tags[key]!r} -> {pairs_to_set[key]!r}")
        else:
            lines.append(f"  + {key}: {pairs_to_set[key]!r}")
    return "\n".join(lines)
