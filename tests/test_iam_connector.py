"""
Tests for the IAM connector.
"""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

from src.reconciler.connectors.iam.addr import PolicyAddress, RoleAddress
from src.reconciler.connectors.iam.connector import IamConnector
from src.reconciler.connectors.iam.op import AttachRolePolicy
from src.reconciler.connectors.iam.resource import Policy, Role, User
from src.reconciler.resolver import Deferred, ReadOutput
from tests.helpers import ACCOUNT_ID, make_connector, write_document

ASSUME_ROLE = {
    "Version": "2012-10-17",
    "Statement": [{"Effect": "Allow", "Principal": {"Service": "lambda.amazonaws.com"}, "Action": "sts:AssumeRole"}],
}
ROLE_PATH = "aws/iam/roles/deployer.json"


class TestIamPlan(unittest.IsolatedAsyncioTestCase):
    """Test IAM plans."""

    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.connector = make_connector(IamConnector, Path(self.tmp.name), MagicMock())

    def tearDown(self) -> None:
        self.tmp.cleanup()

    async def test_attached_policy_set_change(self) -> None:
        """Adding and removing attachments plans one operation each."""
        old = Role(assume_role_policy_document=ASSUME_ROLE, attached_policies={"A", "B", "C"})
        new = Role(assume_role_policy_document=ASSUME_ROLE, attached_policies={"B", "C", "D"})

        plan = await self.connector.plan(ROLE_PATH, old.to_bytes(), new.to_bytes())

        self.assertEqual(
            [(e.op_tag, e.friendly_message) for e in plan],
            [
                ("AttachRolePolicy", "Attach policy `D` for IAM role `deployer`"),
                ("DetachRolePolicy", "Detach policy `A` from IAM role `deployer`"),
            ],
        )

    async def test_policy_order_is_not_a_change(self) -> None:
        """Attachment order does not matter."""
        old = b'{"Role": {"assume_role_policy_document": {}, "attached_policies": ["b", "a"]}}'
        new = b'{"Role": {"assume_role_policy_document": {}, "attached_policies": ["a", "b"]}}'
        self.assertTrue(self.connector.eq(ROLE_PATH, old, new))
        self.assertEqual(await self.connector.plan(ROLE_PATH, old, new), [])

    async def test_create_user_attaches_policies(self) -> None:
        """A new user is created before its policies are attached."""
        plan = await self.connector.plan("aws/iam/users/ci.json", None, User(attached_policies={"ReadOnlyAccess"}).to_bytes())
        self.assertEqual([e.op_tag for e in plan], ["CreateUser", "AttachUserPolicy"])

    async def test_policy_document_change(self) -> None:
        """A changed policy document plans a new default version."""
        old = Policy(policy_document={"Version": "2012-10-17", "Statement": []})
        new = Policy(policy_document={"Version": "2012-10-17", "Statement": [{"Effect": "Allow", "Action": "s3:*", "Resource": "*"}]})
        plan = await self.connector.plan("aws/iam/policies/s3-all.json", old.to_bytes(), new.to_bytes())
        self.assertEqual([e.op_tag for e in plan], ["UpdatePolicyDocument"])


class TestIamExec(unittest.IsolatedAsyncioTestCase):
    """Test IAM operations against a mocked client."""

    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.prefix = Path(self.tmp.name)
        self.client = MagicMock()
        self.connector = make_connector(IamConnector, self.prefix, self.client)

    def tearDown(self) -> None:
        self.tmp.cleanup()

    async def test_attach_and_detach_aws_managed_policies(self) -> None:
        """AWS managed policies are attached by their ARN."""
        old = Role(assume_role_policy_document=ASSUME_ROLE, attached_policies={"A", "B"})
        new = Role(assume_role_policy_document=ASSUME_ROLE, attached_policies={"B", "D"})

        for element in await self.connector.plan(ROLE_PATH, old.to_bytes(), new.to_bytes()):
            await self.connector.op_exec(ROLE_PATH, element.op_definition)

        self.client.attach_role_policy.assert_called_once_with(RoleName="deployer", PolicyArn="arn:aws:iam::aws:policy/D")
        self.client.detach_role_policy.assert_called_once_with(RoleName="deployer", PolicyArn="arn:aws:iam::aws:policy/A")

    async def test_repository_policy_resolves_to_recorded_arn(self) -> None:
        """A repository policy is attached by its recorded ARN."""
        policy = PolicyAddress("deploy")
        write_document(self.prefix, policy, Policy(policy_document={"Version": "2012-10-17", "Statement": []}))
        self.connector.store.put(policy, {"policy_arn": f"arn:aws:iam::{ACCOUNT_ID}:policy/team/deploy"})

        await self.connector.op_exec(ROLE_PATH, AttachRolePolicy(policy="deploy").to_string())

        self.client.attach_role_policy.assert_called_once_with(
            RoleName="deployer", PolicyArn=f"arn:aws:iam::{ACCOUNT_ID}:policy/team/deploy"
        )

    def test_attach_waits_for_repository_policy(self) -> None:
        """Attaching waits for a repository policy to be created."""
        write_document(self.prefix, PolicyAddress("deploy"), Policy(policy_document={}))
        result = self.connector.op_virt_to_phy(ROLE_PATH, AttachRolePolicy(policy="deploy").to_string())
        self.assertEqual(result, Deferred([ReadOutput("aws/iam/policies/deploy.json", "policy_arn")]))

    async def test_create_role(self) -> None:
        """Creating a role records its ARN."""
        self.client.create_role.return_value = {"Role": {"Arn": f"arn:aws:iam::{ACCOUNT_ID}:role/deployer"}}
        plan = await self.connector.plan(ROLE_PATH, None, Role(assume_role_policy_document=ASSUME_ROLE).to_bytes())

        response = await self.connector.op_exec(ROLE_PATH, plan[0].op_definition)

        self.assertEqual(response.outputs, {"role_arn": f"arn:aws:iam::{ACCOUNT_ID}:role/deployer"})
        self.assertEqual(self.client.create_role.call_args.kwargs["RoleName"], "deployer")

    async def test_delete_role_detaches_first(self) -> None:
        """A role's policies are detached before it is deleted."""
        paginator = MagicMock()
        paginator.paginate.return_value = [{"AttachedPolicies": [{"PolicyArn": "arn:aws:iam::aws:policy/A"}]}]
        self.client.get_paginator.return_value = paginator

        response = await self.connector.op_exec(RoleAddress("deployer").to_path(), '{"DeleteRole":{}}')

        self.client.detach_role_policy.assert_called_once_with(RoleName="deployer", PolicyArn="arn:aws:iam::aws:policy/A")
        self.client.delete_role.assert_called_once_with(RoleName="deployer")
        self.assertEqual(response.outputs, {"role_arn": None})


class TestPolicyReferences(unittest.TestCase):
    """Test translation between policy references and ARNs."""

    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.prefix = Path(self.tmp.name)
        self.connector = make_connector(IamConnector, self.prefix, MagicMock())

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_aws_managed_name(self) -> None:
        """An AWS managed policy name becomes its ARN."""
        self.assertEqual(self.connector.policy_ref_to_arn("ReadOnlyAccess"), "arn:aws:iam::aws:policy/ReadOnlyAccess")
        self.assertEqual(self.connector.policy_arn_to_ref("arn:aws:iam::aws:policy/ReadOnlyAccess"), "ReadOnlyAccess")

    def test_full_arn_passes_through(self) -> None:
        """A full ARN is used as given."""
        arn = "arn:aws:iam::210987654321:policy/shared"
        self.assertEqual(self.connector.policy_ref_to_arn(arn), arn)
        self.assertEqual(self.connector.policy_arn_to_ref(arn), arn)

    def test_repository_policy(self) -> None:
        """Repository policy names and their ARNs map both ways."""
        write_document(self.prefix, PolicyAddress("deploy"), Policy(policy_document={}))
        arn = f"arn:aws:iam::{ACCOUNT_ID}:policy/deploy"
        self.assertEqual(self.connector.policy_ref_to_arn("deploy"), arn)
        self.assertEqual(self.connector.policy_arn_to_ref(arn), "deploy")


if __name__ == "__main__":
    unittest.main()
