import pytest

from bninfer.bayesian_network import BayesianNetwork


@pytest.fixture
def two_node_chain():
    """A -> B with P(A=T)=0.6, P(B=T|A=T)=0.9, P(B=T|A=F)=0.2."""
    bn = BayesianNetwork()
    bn.add_node("A", ["T", "F"])
    bn.add_node("B", ["T", "F"])
    bn.add_edge("A", "B")
    bn.set_cpt("A", [0.6, 0.4])
    bn.set_cpt("B", [0.9, 0.1, 0.2, 0.8])
    return bn


@pytest.fixture
def three_node_chain(two_node_chain):
    """A -> B -> C, extending the two node chain with P(C=T|B=T)=0.7, P(C=T|B=F)=0.4."""
    bn = two_node_chain
    bn.add_node("C", ["T", "F"])
    bn.add_edge("B", "C")
    bn.set_cpt("C", [0.7, 0.3, 0.4, 0.6])
    return bn


@pytest.fixture
def alarm_network():
    """The burglary/alarm network: B, E -> A -> J, M."""
    bn = BayesianNetwork()
    for node in ["B", "E", "A", "J", "M"]:
        bn.add_node(node, ["T", "F"])
    bn.add_edge("B", "A")
    bn.add_edge("E", "A")
    bn.add_edge("A", "J")
    bn.add_edge("A", "M")
    bn.set_cpt("B", [0.001, 0.999])
    bn.set_cpt("E", [0.002, 0.998])
    bn.set_cpt("A", [0.95, 0.05, 0.94, 0.06, 0.29, 0.71, 0.001, 0.999])
    bn.set_cpt("J", [0.9, 0.1, 0.05, 0.95])
    bn.set_cpt("M", [0.7, 0.3, 0.01, 0.99])
    return bn


@pytest.fixture
def multi_valued_network():
    """W(3) -> X(2); W, X -> Y(3); Y -> Z(2)."""
    bn = BayesianNetwork()
    bn.add_node("W", ["w0", "w1", "w2"])
    bn.add_node("X", ["x0", "x1"])
    bn.add_node("Y", ["y0", "y1", "y2"])
    bn.add_node("Z", ["z0", "z1"])
    bn.add_edge("W", "X")
    bn.add_edge("W", "Y")
    bn.add_edge("X", "Y")
    bn.add_edge("Y", "Z")
    bn.set_cpt("W", [0.2, 0.5, 0.3])
    bn.set_cpt("X", [0.1, 0.9,
                     0.6, 0.4,
                     0.8, 0.2])
    bn.set_cpt("Y", [0.2, 0.3, 0.5,     # W=w0, X=x0
                     0.1, 0.1, 0.8,     # W=w0, X=x1
                     0.3, 0.3, 0.4,     # W=w1, X=x0
                     0.6, 0.2, 0.2,     # W=w1, X=x1
                     0.25, 0.25, 0.5,   # W=w2, X=x0
                     0.7, 0.2, 0.1])    # W=w2, X=x1
    bn.set_cpt("Z", [0.9, 0.1,
                     0.5, 0.5,
                     0.2, 0.8])
    return bn


@pytest.fixture
def impossible_evidence_network():
    """A -> B where B is never T."""
    bn = BayesianNetwork()
    bn.add_node("A", ["T", "F"])
    bn.add_node("B", ["T", "F"])
    bn.add_edge("A", "B")
    bn.set_cpt("A", [0.5, 0.5])
    bn.set_cpt("B", [0.0, 1.0, 0.0, 1.0])
    return bn
