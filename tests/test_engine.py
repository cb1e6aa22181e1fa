"""
Unit tests for the execution engine
"""

import asyncio
import threading
import unittest
import sys
import os

# Add project root to path so we can import modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from stackgraph import (
    ExecutionStateError,
    NodeState,
    ProviderError,
    ResourceGraph,
    ResourceKind,
    UnresolvedReferenceError,
    execute,
    execute_async,
    resolve_plan,
)
from fakes import AsyncFakeProvider, FakeProvider


def chain_graph():
    """A, then B referencing A's name"""
    graph = ResourceGraph("test")
    a = graph.declare("A", ResourceKind.ROLE, {"role_name": "A"})
    graph.declare("B", ResourceKind.INSTANCE_PROFILE, {"role": a.ref("name")})
    return graph


class TestExecute(unittest.TestCase):
    """Sequential execution"""

    def test_success_passes_outputs_downstream(self):
        graph = chain_graph()
        provider = FakeProvider(outputs={"A": {"name": "A", "arn": "arn:aws:iam::123:role/A"}})

        result = execute(resolve_plan(graph), provider)

        self.assertTrue(result.ok)
        self.assertEqual(result.executed, ["A", "B"])
        self.assertEqual(provider.names, ["A", "B"])
        self.assertEqual(provider.inputs_of("B"), {"role": "A"})
        self.assertEqual(graph.get("A").outputs["arn"], "arn:aws:iam::123:role/A")
        self.assertEqual(graph.get("B").state, NodeState.EXECUTED)

    def test_failure_stops_dependents(self):
        graph = chain_graph()
        provider = FakeProvider(fail={"A": ProviderError("Role", "A", "access denied")})

        result = execute(resolve_plan(graph), provider)

        self.assertFalse(result.ok)
        self.assertEqual(result.executed, [])
        self.assertEqual(result.failed, "A")
        self.assertIsInstance(result.error, ProviderError)
        self.assertEqual(result.skipped, ["B"])
        self.assertEqual(provider.names, ["A"])
        self.assertEqual(graph.get("A").state, NodeState.FAILED)
        self.assertEqual(graph.get("B").state, NodeState.DECLARED)

    def test_failure_stops_independent_nodes_too(self):
        graph = ResourceGraph("test")
        graph.declare("first", ResourceKind.POLICY)
        graph.declare("second", ResourceKind.NAMESPACE)
        provider = FakeProvider(fail={"first": ProviderError("Policy", "first", "malformed")})

        result = execute(resolve_plan(graph), provider)

        self.assertEqual(result.failed, "first")
        self.assertEqual(result.skipped, ["second"])
        self.assertEqual(provider.names, ["first"])

    def test_best_effort_failure_continues(self):
        """A failed policy attachment is recorded and the role's other dependents still run"""
        graph = ResourceGraph("test")
        role = graph.declare("role", ResourceKind.ROLE)
        graph.declare("attach", ResourceKind.POLICY_ATTACHMENT, {"role": role.ref("id")})
        graph.declare("profile", ResourceKind.INSTANCE_PROFILE, {"role": role.ref("id")})
        provider = FakeProvider(fail={"attach": ProviderError("PolicyAttachment", "attach", "throttled")})

        result = execute(resolve_plan(graph), provider)

        self.assertTrue(result.ok)
        self.assertEqual(result.executed, ["role", "profile"])
        self.assertIn("attach", result.best_effort_failures)
        self.assertIsNone(result.failed)
        self.assertEqual(graph.get("attach").state, NodeState.FAILED)
        self.assertEqual(list(result.failures), ["attach"])

    def test_dependents_of_best_effort_failure_are_skipped(self):
        graph = ResourceGraph("test")
        attach = graph.declare("attach", ResourceKind.POLICY_ATTACHMENT)
        after = graph.declare("after", ResourceKind.CHART_INSTALL, depends_on=[attach])
        graph.declare("after-after", ResourceKind.CHART_INSTALL, {"x": after.ref("id")})
        graph.declare("unrelated", ResourceKind.NAMESPACE)
        provider = FakeProvider(fail={"attach": RuntimeError("boom")})

        result = execute(resolve_plan(graph), provider)

        self.assertTrue(result.ok)
        self.assertEqual(result.skipped, ["after", "after-after"])
        self.assertEqual(result.executed, ["unrelated"])
        self.assertNotIn("after", provider.names)

    def test_generic_exception_is_wrapped(self):
        graph = chain_graph()
        cause = RuntimeError("connection reset")
        provider = FakeProvider(fail={"A": cause})

        result = execute(resolve_plan(graph), provider)

        self.assertIsInstance(result.error, ProviderError)
        self.assertIs(result.error.cause, cause)
        self.assertIs(result.error.__cause__, cause)
        self.assertIn("connection reset", str(result.error))

    def test_non_mapping_outputs_fail(self):
        graph = ResourceGraph("test")
        graph.declare("ns", ResourceKind.NAMESPACE)
        provider = FakeProvider(outputs={"ns": "argocd"})

        result = execute(resolve_plan(graph), provider)

        self.assertEqual(result.failed, "ns")
        self.assertIsInstance(result.error, ProviderError)

    def test_none_outputs_mean_no_outputs(self):
        graph = ResourceGraph("test")
        ns = graph.declare("ns", ResourceKind.NAMESPACE)
        provider = FakeProvider(outputs={"ns": None})

        result = execute(resolve_plan(graph), provider)

        self.assertTrue(result.ok)
        self.assertEqual(dict(ns.outputs), {})

    def test_missing_output_key_fails_dependent(self):
        graph = chain_graph()
        provider = FakeProvider(outputs={"A": {"arn": "arn:aws:iam::123:role/A"}})

        result = execute(resolve_plan(graph), provider)

        self.assertEqual(result.executed, ["A"])
        self.assertEqual(result.failed, "B")
        self.assertIsInstance(result.error, UnresolvedReferenceError)
        self.assertEqual(result.error.key, "name")
        self.assertEqual(provider.names, ["A"])
        self.assertEqual(graph.get("B").state, NodeState.FAILED)

    def test_plan_executes_once(self):
        graph = chain_graph()
        plan = resolve_plan(graph)
        provider = FakeProvider(outputs={"A": {"name": "A"}})
        execute(plan, provider)

        with self.assertRaises(ExecutionStateError) as ctx:
            execute(plan, provider)
        self.assertEqual(ctx.exception.name, "A")
        self.assertEqual(len(provider.calls), 2)

    def test_cancel_stops_before_next_node(self):
        graph = chain_graph()
        cancel = threading.Event()

        class CancellingProvider(FakeProvider):
            def apply(self, kind, inputs, name):
                outputs = super().apply(kind, inputs, name)
                cancel.set()
                return outputs

        provider = CancellingProvider(outputs={"A": {"name": "A"}})
        result = execute(resolve_plan(graph), provider, cancel=cancel)

        self.assertTrue(result.cancelled)
        self.assertFalse(result.ok)
        self.assertEqual(result.executed, ["A"])
        self.assertEqual(result.skipped, ["B"])
        self.assertEqual(graph.get("B").state, NodeState.DECLARED)

    def test_awaitable_provider_rejected(self):
        graph = ResourceGraph("test")
        graph.declare("ns", ResourceKind.NAMESPACE)

        result = execute(resolve_plan(graph), AsyncFakeProvider())

        self.assertEqual(result.failed, "ns")
        self.assertIn("execute_async", str(result.error))

    def test_result_serializes(self):
        graph = chain_graph()
        result = execute(resolve_plan(graph), FakeProvider(fail={"A": RuntimeError("denied")}))

        data = result.to_dict()
        self.assertEqual(data["environment"], "test")
        self.assertEqual(data["failed"], "A")
        self.assertEqual(data["skipped"], ["B"])
        self.assertIn("denied", data["error"])


def diamond_graph():
    """A and B independent, C depends on both"""
    graph = ResourceGraph("test")
    a = graph.declare("A", ResourceKind.ROLE)
    b = graph.declare("B", ResourceKind.POLICY)
    graph.declare("C", ResourceKind.CLUSTER, {"roles": [a.ref("id")], "policy": b.ref("id")})
    return graph


class TestExecuteAsync(unittest.TestCase):
    """Concurrent execution"""

    def test_independent_nodes_overlap(self):
        graph = diamond_graph()
        provider = AsyncFakeProvider(delays={"A": 0.05, "B": 0.02})

        result = asyncio.run(execute_async(resolve_plan(graph), provider))

        self.assertTrue(result.ok)
        self.assertEqual(provider.max_in_flight, 2)
        self.assertEqual(provider.finished, ["B", "A", "C"])
        self.assertEqual(provider.inputs_of("C"), {"roles": ["A-id"], "policy": "B-id"})
        self.assertEqual(sorted(result.executed), ["A", "B", "C"])
        self.assertEqual(result.executed[-1], "C")

    def test_max_concurrency(self):
        graph = diamond_graph()
        provider = AsyncFakeProvider()

        result = asyncio.run(execute_async(resolve_plan(graph), provider, max_concurrency=1))

        self.assertTrue(result.ok)
        self.assertEqual(provider.max_in_flight, 1)
        self.assertEqual(provider.names, ["A", "B", "C"])

    def test_max_concurrency_below_one_rejected(self):
        for value in (0, -1):
            with self.subTest(max_concurrency=value):
                graph = diamond_graph()
                provider = AsyncFakeProvider()
                with self.assertRaises(ValueError):
                    asyncio.run(execute_async(resolve_plan(graph), provider, max_concurrency=value))
                self.assertEqual(provider.calls, [])

    def test_sync_provider_accepted(self):
        graph = chain_graph()
        provider = FakeProvider(outputs={"A": {"name": "A"}})

        result = asyncio.run(execute_async(resolve_plan(graph), provider))

        self.assertEqual(result.executed, ["A", "B"])

    def test_fatal_failure_waits_for_in_flight_calls(self):
        graph = ResourceGraph("test")
        slow = graph.declare("slow", ResourceKind.POLICY)
        graph.declare("fails", ResourceKind.ROLE)
        graph.declare("after-slow", ResourceKind.NAMESPACE, {"x": slow.ref("id")})
        provider = AsyncFakeProvider(
            delays={"slow": 0.05, "fails": 0.01},
            fail={"fails": ProviderError("Role", "fails", "denied")},
        )

        result = asyncio.run(execute_async(resolve_plan(graph), provider))

        self.assertEqual(result.failed, "fails")
        self.assertEqual(result.executed, ["slow"])
        self.assertEqual(result.skipped, ["after-slow"])
        self.assertEqual(graph.get("slow").state, NodeState.EXECUTED)
        self.assertEqual(graph.get("after-slow").state, NodeState.DECLARED)
        self.assertNotIn("after-slow", provider.names)

    def test_second_fatal_failure_is_kept(self):
        graph = ResourceGraph("test")
        graph.declare("first", ResourceKind.ROLE)
        graph.declare("second", ResourceKind.POLICY)
        provider = AsyncFakeProvider(
            delays={"first": 0.01, "second": 0.03},
            fail={"first": RuntimeError("one"), "second": RuntimeError("two")},
        )

        result = asyncio.run(execute_async(resolve_plan(graph), provider))

        self.assertEqual(result.failed, "first")
        self.assertEqual(list(result.concurrent_failures), ["second"])
        self.assertEqual(set(result.failures), {"first", "second"})

    def test_best_effort_failure_continues(self):
        graph = ResourceGraph("test")
        role = graph.declare("role", ResourceKind.ROLE)
        graph.declare("attach", ResourceKind.POLICY_ATTACHMENT, {"role": role.ref("id")})
        graph.declare("profile", ResourceKind.INSTANCE_PROFILE, {"role": role.ref("id")})
        provider = AsyncFakeProvider(fail={"attach": RuntimeError("throttled")})

        result = asyncio.run(execute_async(resolve_plan(graph), provider))

        self.assertTrue(result.ok)
        self.assertEqual(sorted(result.executed), ["profile", "role"])
        self.assertIn("attach", result.best_effort_failures)

    def test_cancel_lets_in_flight_finish(self):
        graph = chain_graph()
        cancel = threading.Event()

        class CancellingProvider(AsyncFakeProvider):
            async def apply(self, kind, inputs, name):
                cancel.set()
                return await super().apply(kind, inputs, name)

        provider = CancellingProvider(outputs={"A": {"name": "A"}})
        result = asyncio.run(execute_async(resolve_plan(graph), provider, cancel=cancel))

        self.assertTrue(result.cancelled)
        self.assertEqual(result.executed, ["A"])
        self.assertEqual(result.skipped, ["B"])
        self.assertEqual(provider.names, ["A"])


if __name__ == '__main__':
    unittest.main()
