"""
Tests for Variable and BayesianNetwork.
"""

import numpy as np
import pytest

from bninfer.bayesian_network import BayesianNetwork, Variable
from bninfer.exceptions import ConfigurationError
from bninfer.inference import OperationCounter


class TestVariable:
    def test_outcome_index_trims_whitespace(self):
        var = Variable("A", [" T", "F "])
        assert var.outcome_index("T") == 0
        assert var.outcome_index(" F") == 1

    def test_unknown_outcome(self):
        var = Variable("A", ["T", "F"])
        with pytest.raises(ConfigurationError, match="Unknown outcome"):
            var.outcome_index("maybe")

    def test_configuration_error_is_value_error(self):
        var = Variable("A", ["T", "F"])
        with pytest.raises(ValueError):
            var.outcome_index("maybe")

    def test_mixed_radix_index(self):
        bn = BayesianNetwork()
        bn.add_node("P", ["p0", "p1"])
        bn.add_node("Q", ["q0", "q1", "q2"])
        bn.add_node("X", ["x0", "x1", "x2"])
        bn.add_edge("P", "X")
        bn.add_edge("Q", "X")
        bn.set_cpt("X", [i / 100 for i in range(18)])

        x = bn.get_variable("X")
        assignment = {"P": "p1", "Q": "q2", "X": "x1"}
        # (P * |Q| + Q) * |X| + X
        assert x.cpt_index(assignment, bn.variables) == (1 * 3 + 2) * 3 + 1
        assert x.get_probability(assignment, bn.variables) == pytest.approx(0.16)

    def test_own_outcome_is_fastest_digit(self, two_node_chain):
        b = two_node_chain.get_variable("B")
        variables = two_node_chain.variables
        assert b.cpt_index({"A": "T", "B": "T"}, variables) == 0
        assert b.cpt_index({"A": "T", "B": "F"}, variables) == 1
        assert b.cpt_index({"A": "F", "B": "T"}, variables) == 2
        assert b.cpt_index({"A": "F", "B": "F"}, variables) == 3

    def test_missing_parent_value(self, two_node_chain):
        b = two_node_chain.get_variable("B")
        with pytest.raises(ConfigurationError, match="Missing value for parent"):
            b.get_probability({"B": "T"}, two_node_chain.variables)

    def test_ordered_parent_values(self, alarm_network):
        a = alarm_network.get_variable("A")
        assert a.ordered_parent_values({"E": "F", "B": "T", "A": "T"}) == ["T", "F"]

    def test_negative_cpt_rejected(self):
        var = Variable("A", ["T", "F"])
        with pytest.raises(ConfigurationError):
            var.set_cpt([1.2, -0.2])

    def test_cpt_stored_as_array(self):
        var = Variable("A", ["T", "F"])
        var.set_cpt([0.3, 0.7])
        assert isinstance(var.cpt, np.ndarray)
        assert var.cpt.tolist() == [0.3, 0.7]


class TestNetworkConstruction:
    def test_duplicate_variable_merges_outcomes(self):
        bn = BayesianNetwork()
        first = bn.add_node("A", ["T", "F"])
        merged = bn.add_node("A", ["F", "U"])
        assert merged is first
        assert first.outcomes == ["T", "F", "U"]
        assert len(bn) == 1

    def test_duplicate_edge_rejected(self, two_node_chain):
        with pytest.raises(ConfigurationError, match="already a parent"):
            two_node_chain.add_edge("A", "B")
        assert two_node_chain.get_variable("B").parents == ["A"]

    def test_cycle_rejected(self):
        bn = BayesianNetwork()
        bn.add_node("A", ["T", "F"])
        bn.add_node("B", ["T", "F"])
        bn.add_edge("A", "B")
        with pytest.raises(ConfigurationError, match="Cycles"):
            bn.add_edge("B", "A")
        assert not bn.graph.has_edge("B", "A")
        assert bn.get_variable("A").parents == []

    def test_edge_to_unknown_variable(self):
        bn = BayesianNetwork()
        bn.add_node("A", ["T", "F"])
        with pytest.raises(ConfigurationError):
            bn.add_edge("A", "Missing")

    def test_validate_cpt_length(self, two_node_chain):
        two_node_chain.set_cpt("B", [0.9, 0.1, 0.2])
        with pytest.raises(ConfigurationError, match="CPT length mismatch"):
            two_node_chain.validate()

    def test_validate_missing_cpt(self):
        bn = BayesianNetwork()
        bn.add_node("A", ["T", "F"])
        with pytest.raises(ConfigurationError, match="No CPT"):
            bn.validate()

    def test_validate_dangling_parent(self):
        bn = BayesianNetwork()
        var = Variable("B", ["T", "F"])
        var.add_parent("Ghost")
        var.set_cpt([0.5, 0.5, 0.5, 0.5])
        bn.add_variable(var)
        with pytest.raises(ConfigurationError, match="not in the network"):
            bn.validate()

    def test_validate_accepts_well_formed(self, alarm_network):
        alarm_network.validate()

    def test_unknown_variable_lookup(self, alarm_network):
        with pytest.raises(ConfigurationError, match="Unknown variable"):
            alarm_network.get_variable("Nope")


class TestTopology:
    def test_parents_precede_children(self, alarm_network):
        order = [v.name for v in alarm_network.topological_order()]
        assert sorted(order) == sorted(alarm_network.variables)
        for variable in alarm_network.variables.values():
            for parent in variable.parents:
                assert order.index(parent) < order.index(variable.name)

    def test_reverse_insertion_order(self):
        bn = BayesianNetwork()
        for node in ["C", "B", "A"]:
            bn.add_node(node, ["T", "F"])
        bn.add_edge("A", "B")
        bn.add_edge("B", "C")
        assert [v.name for v in bn.topological_order()] == ["A", "B", "C"]

    def test_independent_subgraphs_follow_insertion_order(self, alarm_network):
        order = [v.name for v in alarm_network.topological_order()]
        assert order == ["B", "E", "A", "J", "M"]

    def test_relevant_variables_are_ancestor_closed(self, alarm_network):
        assert alarm_network.find_relevant_variables("B", {"J": "T"}) == {"B", "J", "A", "E"}
        assert alarm_network.find_relevant_variables("E", {}) == {"E"}

    def test_children(self, alarm_network):
        assert alarm_network.get_children("A") == ["J", "M"]
        assert alarm_network.get_children("J") == []

    def test_is_descendant(self, alarm_network):
        assert alarm_network.is_descendant("B", "J")
        assert not alarm_network.is_descendant("J", "B")
        assert not alarm_network.is_descendant("A", "A")
        assert not alarm_network.is_descendant("J", "M")


class TestJointProbability:
    def test_joint(self, two_node_chain):
        counter = OperationCounter()
        prob = two_node_chain.joint_probability({"A": "T", "B": "F"}, counter)
        assert prob == pytest.approx(0.06)
        assert counter.multiplications == 1

    def test_joint_sums_to_one(self, alarm_network):
        total = 0.0
        for b in "TF":
            for e in "TF":
                for a in "TF":
                    for j in "TF":
                        for m in "TF":
                            total += alarm_network.joint_probability(
                                {"B": b, "E": e, "A": a, "J": j, "M": m})
        assert total == pytest.approx(1.0)

    def test_joint_requires_full_assignment(self, two_node_chain):
        with pytest.raises(ConfigurationError):
            two_node_chain.joint_probability({"A": "T"})
