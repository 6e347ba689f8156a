"""
Tests for tag reconciliation.
"""

import unittest

from src.reconciler.tags import apply_tag_diff, describe_tag_diff, from_aws_tags, tag_diff, to_aws_tags


class TestTagDiff(unittest.TestCase):
    """Test the remove/set split of a tag change."""

    def test_changed_value_is_a_set_not_a_remove(self) -> None:
        """A changed value is a set, not a removal."""
        keys_to_remove, pairs_to_set = tag_diff({"env": "dev"}, {"env": "prod", "team": "infra"})
        self.assertEqual(keys_to_remove, [])
        self.assertEqual(pairs_to_set, {"env": "prod", "team": "infra"})

    def test_removed_key(self) -> None:
        """A removed key is listed for removal."""
        keys_to_remove, pairs_to_set = tag_diff({"env": "dev", "old": "x"}, {"env": "dev"})
        self.assertEqual(keys_to_remove, ["old"])
        self.assertEqual(pairs_to_set, {})

    def test_identical_tags_produce_empty_diff(self) -> None:
        """Identical tags produce an empty diff."""
        self.assertEqual(tag_diff({"a": "1"}, {"a": "1"}), ([], {}))

    def test_empty_value_is_a_real_value(self) -> None:
        """An empty string is a value, not an absence."""
        keys_to_remove, pairs_to_set = tag_diff({"a": "1"}, {"a": ""})
        self.assertEqual(keys_to_remove, [])
        self.assertEqual(pairs_to_set, {"a": ""})

    def test_applying_diff_yields_new_tags(self) -> None:
        """Applying a diff to the old tags yields the new ones."""
        old = {"env": "dev", "owner": "ops", "gone": "1"}
        new = {"env": "prod", "owner": "ops", "added": ""}
        self.assertEqual(apply_tag_diff(old, *tag_diff(old, new)), new)


class TestAwsTagShapes(unittest.TestCase):
    """Test conversion to and from AWS list-shaped tags."""

    def test_to_aws_tags_is_sorted(self) -> None:
        """AWS tag lists are sorted by key."""
        self.assertEqual(
            to_aws_tags({"b": "2", "a": "1"}),
            [{"Key": "a", "Value": "1"}, {"Key": "b", "Value": "2"}],
        )

    def test_custom_key_names(self) -> None:
        """Services with other key names are supported."""
        tags = to_aws_tags({"a": "1"}, "TagKey", "TagValue")
        self.assertEqual(tags, [{"TagKey": "a", "TagValue": "1"}])
        self.assertEqual(from_aws_tags(tags, "TagKey", "TagValue"), {"a": "1"})

    def test_from_aws_tags_handles_missing_values(self) -> None:
        """A tag without a value reads as empty."""
        self.assertEqual(from_aws_tags([{"Key": "a"}, {"Value": "orphan"}]), {"a": ""})
        self.assertEqual(from_aws_tags(None), {})


class TestDescribeTagDiff(unittest.TestCase):
    """Test rendering of tag changes."""

    def test_lines_for_each_kind_of_change(self) -> None:
        """Each kind of change renders its own line."""
        text = describe_tag_diff({"env": "dev", "old": "x"}, {"env": "prod", "new": "y"})
        self.assertEqual(text.splitlines(), ["  - old", "  ~ env: 'dev' -> 'prod'", "  + new: 'y'"])


if __name__ == "__main__":
    unittest.main()
