from __future__ import annotations

import math
import unittest

from sexpr_jax import evaluate, parse, reset_random_streams
from sexpr_jax.ast import Constant, Expression
from sexpr_jax.errors import ArityError, ExprSyntaxError, UnsupportedOperatorError
from sexpr_jax.operators import OPERATORS
from sexpr_jax.registry import VariableRegistry


class ConstantEvaluationTests(unittest.TestCase):
    def test_simple_expressions(self) -> None:
        self.assertEqual(evaluate("(* 2 3)"), 6.0)
        self.assertEqual(evaluate("(!= 2 3)"), 1.0)
        self.assertEqual(evaluate("(if (>= 4 5) 1 2)"), 2.0)
        self.assertEqual(evaluate("(if (in 3 4 5) 2 1)"), 1.0)
        self.assertEqual(evaluate("(in 3 4 5)"), 0.0)
        self.assertEqual(evaluate("(in 4 4 5)"), 1.0)
        self.assertAlmostEqual(evaluate("(ln1plus 2)"), math.log(1 + 2), places=12)
        self.assertAlmostEqual(evaluate("(cos 1)"), math.cos(1), places=12)

    def test_minus_is_unary_with_one_operand(self) -> None:
        self.assertEqual(evaluate("(- 1)"), -1.0)
        self.assertEqual(evaluate("(- 5 3)"), 2.0)
        self.assertEqual(evaluate("(- (- 4))"), 4.0)

    def test_unary_minus_is_reachable_by_name(self) -> None:
        self.assertEqual(evaluate("(unaryMinus 3)"), -3.0)
        self.assertEqual(evaluate("(+ 1 (unaryMinus (- 4)))"), 5.0)
        with self.assertRaises(ArityError):
            evaluate("(unaryMinus 1 2)")

    def test_round_follows_java_semantics(self) -> None:
        self.assertEqual(evaluate("(round NaN)"), 0.0)
        self.assertEqual(evaluate("(round 1e300)"), float(2**63 - 1))
        self.assertEqual(evaluate("(round (- 2.5))"), -2.0)

    def test_bare_atoms_evaluate(self) -> None:
        self.assertEqual(evaluate("42"), 42.0)
        self.assertEqual(evaluate("(3.5)"), 3.5)
        self.assertEqual(evaluate("unknown"), 0.0)

    def test_result_is_a_python_float(self) -> None:
        self.assertIs(type(evaluate("(+ 1 2)")), float)

    def test_scoring_formula(self) -> None:
        expected = 0.5 + 15.0 / 1000.0 * math.log(55.0 - 12.0)
        self.assertAlmostEqual(evaluate("(+ 0.5 (* (/ 15 1000) (ln (- 55 12))))"), expected, places=12)

    def test_deeply_nested_conditional_formula(self) -> None:
        source = (
            "(* (if (&& (== 0 12) (&& 3 (&& (&& (>= 4 5) (<= 4 6)) (&& (>= 7 5 ) (<= 7 4))))) 0 "
            "(if (&& (== 3 0) (<= 55 3)) 0 "
            "(if (&& (== 3 0) (|| (|| (&& 2 (&& 3 1) ) 1) (&& 6 3))) 0 "
            "(if (<= 55 12) (/ (* 0.5 55) 12)(+ 0.5 (*(/ 15 1000) (ln (- 55 12)))))))) 1000)"
        )
        expected = 1000 * (0.5 + 15.0 / 1000.0 * math.log(55.0 - 12.0))
        self.assertAlmostEqual(evaluate(source), expected, places=9)

    def test_domain_errors_degrade_to_inf_and_nan(self) -> None:
        self.assertEqual(evaluate("(/ 1 0)"), math.inf)
        self.assertTrue(math.isnan(evaluate("(ln (- 1))")))
        self.assertTrue(math.isnan(evaluate("(+ 1 (sqrt (- 4)))")))
        self.assertEqual(evaluate("(** 0 (- 1))"), math.inf)

    def test_parse_errors_surface_from_string_evaluation(self) -> None:
        with self.assertRaises(UnsupportedOperatorError):
            evaluate("(atan 1)")
        with self.assertRaises(ArityError):
            evaluate("(+ 1+1)")
        with self.assertRaises(ExprSyntaxError):
            evaluate("(+ 1 2")
        with self.assertRaises(ExprSyntaxError):
            evaluate("   ")

    def test_hand_built_trees_evaluate(self) -> None:
        tree = Expression(OPERATORS["max"], (Constant(2.0), Expression(OPERATORS["abs"], (Constant(-7.0),))))
        self.assertEqual(evaluate(tree), 7.0)

    def test_unknown_node_type_is_rejected(self) -> None:
        with self.assertRaises(TypeError):
            evaluate(3.0)  # type: ignore[arg-type]


class VariableEvaluationTests(unittest.TestCase):
    def _sigmoid(self, a: float, x: float, b: float) -> float:
        return 1.0 / (1.0 + math.exp(-a * x - b))

    def test_reevaluation_follows_cell_updates(self) -> None:
        registry = VariableRegistry()
        expression = parse("(sigmoid (+ (* a x) b))", registry)
        x = registry.find_variable("x")
        a = registry.find_variable("a")
        b = registry.find_variable("b")

        x.value, a.value, b.value = 1, 2, 3
        self.assertAlmostEqual(evaluate(expression), 1.0 / (1.0 + math.exp(-5.0)), places=12)

        x.value = 4
        self.assertEqual(x.value, 4.0)
        self.assertAlmostEqual(evaluate(expression), self._sigmoid(2, 4, 3), places=12)

        a.value, b.value = 5, 6
        self.assertAlmostEqual(evaluate(expression), self._sigmoid(5, 4, 6), places=12)

    def test_refresh_sets_values_and_zeroes_missing_ones(self) -> None:
        registry = VariableRegistry()
        expression = parse("(sigmoid (+ (* a x) b))", registry)
        registry.refresh({"x": 0.2, "a": 0.6, "b": 0.8})
        self.assertEqual(registry.snapshot(), {"a": 0.6, "x": 0.2, "b": 0.8})
        self.assertAlmostEqual(evaluate(expression), self._sigmoid(0.6, 0.2, 0.8), places=12)

        registry.refresh({"x": 0.2, "a": 0.6})
        self.assertEqual(registry["b"].value, 0.0)
        self.assertAlmostEqual(evaluate(expression), self._sigmoid(0.6, 0.2, 0.0), places=12)

    def test_shared_cell_is_visible_through_every_occurrence(self) -> None:
        registry = VariableRegistry()
        expression = parse("(- (* x x) x)", registry)
        occurrence = expression.operands[1]
        occurrence.cell.value = 3.0
        self.assertEqual(evaluate(expression), 6.0)

    def test_string_evaluation_against_supplied_registry(self) -> None:
        registry = VariableRegistry()
        registry.lookup_or_create("w").value = 2.5
        self.assertEqual(evaluate("(* w 4)", registry), 10.0)

    def test_evaluation_is_recomputed_every_call(self) -> None:
        registry = VariableRegistry()
        expression = parse("(+ n 1)", registry)
        results = []
        for n in range(3):
            registry.refresh({"n": n})
            results.append(evaluate(expression))
        self.assertEqual(results, [1.0, 2.0, 3.0])


class RandomEvaluationTests(unittest.TestCase):
    def setUp(self) -> None:
        reset_random_streams()

    def test_rand_in_stays_in_range(self) -> None:
        expression = parse("(rand-in 5 10)")
        for _ in range(20):
            value = evaluate(expression)
            self.assertGreaterEqual(value, 5.0)
            self.assertLessEqual(value, 10.0)

    def test_rand_stays_in_unit_interval_and_advances(self) -> None:
        expression = parse("(rand)")
        values = [evaluate(expression) for _ in range(10)]
        for value in values:
            self.assertGreaterEqual(value, 0.0)
            self.assertLessEqual(value, 1.0)
        self.assertGreater(len(set(values)), 1)

    def test_sequence_is_reproducible_from_seed(self) -> None:
        first = [evaluate("(rand)") for _ in range(4)]
        reset_random_streams()
        second = [evaluate("(rand)") for _ in range(4)]
        self.assertEqual(first, second)

    def test_rand_and_rand_in_own_separate_streams(self) -> None:
        unit = evaluate("(rand)")
        reset_random_streams()
        evaluate("(rand-in 0 1)")
        self.assertEqual(evaluate("(rand)"), unit)


if __name__ == "__main__":
    unittest.main()
