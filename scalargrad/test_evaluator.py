"""
Tests for the four optimization-step phases
"""

import unittest

import numpy as np

from scalargrad import ops
from scalargrad.arena import Arena
from scalargrad.errors import EmptyGraphError
from scalargrad.evaluator import backward, forward, optimization_step, update, zero_grad
from scalargrad.graph import Graph
from scalargrad.network import NetworkConfig, inputs, network


class TestEvaluator(unittest.TestCase):

    def setUp(self):
        self.rng = np.random.default_rng(1)
        self.config = NetworkConfig(num_inputs=3, num_neurons=[4, 2, 1])
        self.arena = Arena(self.config.required_capacity() + 8)
        self.x = inputs(self.arena, 3, values=[0.2, -0.4, 0.9])
        self.y = ops.constant(self.arena, 1.5, tag="y")
        self.y_pred = network(self.arena, self.x, self.config, self.rng)[0]
        self.loss = ops.mean_squared_error(self.y, self.y_pred)
        self.graph = Graph.build(self.loss, capacity=len(self.arena))

    def tearDown(self):
        self.arena.release()

    def test_constants_never_change(self):
        constants = [(node, node.value) for node in self.graph if node.constant]
        self.assertGreater(len(constants), 0)
        for _ in range(25):
            optimization_step(self.graph, 0.1)
        for node, value in constants:
            self.assertEqual(node.value, value)

    def test_operator_values_follow_parameters(self):
        """A product inside the loss is derived, so it moves as the weights train"""
        products = [node for node in self.graph if node.kind is ops.Op.MUL and not node.constant]
        self.assertEqual(len(products), len([node for node in self.graph if node.kind is ops.Op.MUL]))
        _, squared = self.loss.operands
        self.assertIn(squared, products)

        y_value = self.y.value
        seen = [squared.value]
        for _ in range(3):
            optimization_step(self.graph, 0.1)
            forward(self.graph)
            seen.append(squared.value)
        self.assertEqual(len(set(seen)), len(seen))
        self.assertEqual(self.y.value, y_value)

    def test_zero_grad(self):
        optimization_step(self.graph, 0.1)
        self.assertTrue(any(node.grad != 0.0 for node in self.graph))
        zero_grad(self.graph)
        for node in self.graph:
            self.assertEqual(node.grad, 0.0)

    def test_forward_is_deterministic(self):
        forward(self.graph)
        first = [node.value for node in self.graph]
        for _ in range(3):
            forward(self.graph)
            self.assertEqual([node.value for node in self.graph], first)

    def test_forward_picks_up_new_inputs(self):
        forward(self.graph)
        before = self.y_pred.value
        for node in self.x:
            node.value = node.value + 1.0
        forward(self.graph)
        self.assertNotEqual(self.y_pred.value, before)

    def test_backward_seeds_root(self):
        zero_grad(self.graph)
        forward(self.graph)
        backward(self.graph)
        self.assertEqual(self.graph.root.grad, 1.0)
        self.assertAlmostEqual(self.y_pred.grad, self.y_pred.value - self.y.value)

    def test_update_only_touches_parameters(self):
        zero_grad(self.graph)
        forward(self.graph)
        backward(self.graph)
        before = {node: (node.value, node.grad) for node in self.graph}
        update(self.graph, 0.5)
        for node, (value, grad) in before.items():
            if node.is_parameter:
                self.assertAlmostEqual(node.value, value - 0.5 * grad)
            else:
                self.assertEqual(node.value, value)

    def test_step_returns_forward_loss(self):
        zero_grad(self.graph)
        forward(self.graph)
        expected = self.loss.value
        self.assertEqual(optimization_step(self.graph, 0.1), expected)

    def test_repeated_steps_reduce_loss(self):
        first = optimization_step(self.graph, 0.05)
        for _ in range(200):
            last = optimization_step(self.graph, 0.05)
        self.assertLess(last, first)

    def test_empty_graph(self):
        with self.assertRaises(EmptyGraphError):
            optimization_step(Graph(self.arena, []), 0.1)


class TestScenarios(unittest.TestCase):

    def test_weighted_sum(self):
        """w1 * x1 + w2 * x2 with w = (3, -1), x = (2, 5) evaluates to 1"""
        with Arena(16) as arena:
            w1 = ops.parameter(arena, 3.0)
            w2 = ops.parameter(arena, -1.0)
            x1 = ops.constant(arena, 0.0)
            x2 = ops.constant(arena, 0.0)
            out = ops.add(ops.mul(w1, x1), ops.mul(w2, x2))
            graph = Graph.build(out, capacity=16)

            x1.value = 2.0
            x2.value = 5.0
            forward(graph)
            self.assertEqual(out.value, 1.0)

    def test_weighted_sum_gradients(self):
        with Arena(16) as arena:
            w1 = ops.parameter(arena, 3.0)
            w2 = ops.parameter(arena, -1.0)
            out = w1 * 2.0 + w2 * 5.0
            graph = Graph.build(out, capacity=16)
            zero_grad(graph)
            forward(graph)
            backward(graph)
            self.assertEqual((w1.grad, w2.grad), (2.0, 5.0))


if __name__ == '__main__':
    unittest.main()
