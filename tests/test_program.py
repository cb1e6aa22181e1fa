"""
Unit tests for the Pulumi program
Runs __main__.py with the stack configuration, AWS lookups and provider replaced
"""

import runpy
import unittest
from unittest.mock import Mock, patch
import sys
import os

# Add project root to path so we can import modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from stackgraph import ProviderError
from fakes import FakeProvider, eks_outputs, stack_config

PROGRAM = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "__main__.py")


class TestProgram(unittest.TestCase):
    """Exports of successful environments are published, then the first failure is raised"""

    def run_program(self, provider):
        exports = {}
        with patch('config.get_config', return_value=stack_config()), \
             patch('modules.vpc.functions.aws') as mock_aws, \
             patch('modules.PulumiProvider', return_value=provider), \
             patch('pulumi.export', side_effect=lambda name, value: exports.__setitem__(name, value)):
            mock_aws.ec2.get_vpc.return_value = Mock(id="vpc-123")
            mock_aws.ec2.get_subnets.return_value = Mock(ids=["subnet-b", "subnet-a"])
            try:
                runpy.run_path(PROGRAM, run_name="__main__")
                error = None
            except ProviderError as e:
                error = e
        return exports, error

    def test_all_environments_published(self):
        provider = FakeProvider(outputs={**eks_outputs("test"), **eks_outputs("prod")})

        exports, error = self.run_program(provider)

        self.assertIsNone(error)
        self.assertEqual(exports["test-kubeconfig"], "test-kubeconfig-json")
        self.assertEqual(exports["prod-kubeconfig"], "prod-kubeconfig-json")
        self.assertEqual(set(exports["environments"]), {"test", "prod"})
        self.assertEqual(provider.inputs_of("test-aws-demo")["subnet_ids"], ["subnet-a", "subnet-b"])

    def test_failed_environment_raised_after_exports(self):
        provider = FakeProvider(outputs={**eks_outputs("test"), **eks_outputs("prod")},
                                fail={"prod-aws-demo": RuntimeError("EKS quota exceeded")})

        exports, error = self.run_program(provider)

        self.assertIsInstance(error, ProviderError)
        self.assertEqual(error.name, "prod-aws-demo")
        self.assertIn("test-kubeconfig", exports)
        self.assertNotIn("prod-kubeconfig", exports)
        self.assertEqual(exports["environments"]["prod"]["failed"], "prod-aws-demo")
        self.assertTrue(exports["environments"]["test"]["executed"])


if __name__ == '__main__':
    unittest.main()
