import logging
from collections import deque

import matplotlib.pyplot as plt
import networkx as nx
import numpy as np

from .exceptions import ConfigurationError

log = logging.getLogger(__name__)


class Variable:
    """
    A discrete node of a Bayesian network.

    A variable has an ordered list of outcomes, an ordered list of parent
    names and a flat Conditional Probability Table (CPT). The CPT is laid
    out so that the variable's own outcome changes fastest, then the last
    declared parent, then the one before it, and so on.
    """

    def __init__(self, name, outcomes=None):
        self.name = name
        self.outcomes = list(outcomes or [])
        self.parents = []
        self.cpt = None

    def __repr__(self):
        return f"Variable({self.name!r}, outcomes={self.outcomes}, parents={self.parents})"

    @property
    def domain_size(self):
        return len(self.outcomes)

    def add_outcome(self, outcome):
        self.outcomes.append(outcome)

    def add_parent(self, parent):
        self.parents.append(parent)

    def set_cpt(self, cpt):
        """Sets the CPT from any flat sequence of probabilities."""
        cpt = np.asarray(cpt, dtype=float)
        if cpt.ndim != 1:
            raise ConfigurationError(
                f"CPT for '{self.name}' must be a flat sequence, got shape {cpt.shape}")
        if np.any(cpt < 0):
            raise ConfigurationError(f"CPT for '{self.name}' contains negative entries.")
        self.cpt = cpt

    def outcome_index(self, value):
        """
        Finds the position of an outcome value in the outcomes list.

        Raises:
            ConfigurationError: if the value is not one of the outcomes.
        """
        value = value.strip()
        for i, outcome in enumerate(self.outcomes):
            if outcome.strip() == value:
                return i
        raise ConfigurationError(
            f"Unknown outcome '{value}' for variable '{self.name}'. Outcomes = {self.outcomes}")

    def ordered_parent_values(self, assignment):
        """Returns the parent values from an assignment, in declared parent order."""
        ordered = []
        for parent in self.parents:
            value = assignment.get(parent)
            if value is None:
                raise ConfigurationError(
                    f"Missing value for parent '{parent}' of '{self.name}'.")
            ordered.append(value.strip())
        return ordered

    def cpt_index(self, assignment, network_vars):
        """
        Computes the flat CPT index for a complete assignment of this
        variable and its parents.

        Args:
            assignment (dict): variable name -> outcome value.
            network_vars (dict): variable name -> Variable, for parent domains.
        """
        parent_values = self.ordered_parent_values(assignment)
        own_value = assignment.get(self.name)
        if own_value is None:
            raise ConfigurationError(f"Missing value for variable '{self.name}'.")

        index = 0
        multiplier = 1
        # Parents from last to first
        for parent_name, value in reversed(list(zip(self.parents, parent_values))):
            parent = network_vars[parent_name]
            index += parent.outcome_index(value) * multiplier
            multiplier *= parent.domain_size

        return index * self.domain_size + self.outcome_index(own_value)

    def get_probability(self, assignment, network_vars):
        """P(self = assignment[self] | parents = assignment[parents])."""
        if self.cpt is None:
            raise ConfigurationError(f"No CPT set for variable '{self.name}'.")
        return float(self.cpt[self.cpt_index(assignment, network_vars)])


class BayesianNetwork:
    """
    A Bayesian network over discrete variables with string outcomes.

    Variables are kept in insertion order; the parent structure is mirrored
    in a networkx DiGraph so structural queries can use graph algorithms.
    """

    def __init__(self):
        """Initialize the Bayesian network as a directed acyclic graph (DAG)"""
        self.graph = nx.DiGraph()
        self.variables = {}
        log.debug("Initialized empty Bayesian Network.")

    def __contains__(self, name):
        return name in self.variables

    def __len__(self):
        return len(self.variables)

    # --- Construction ---

    def add_variable(self, variable):
        """
        Add a variable to the network. If a variable with the same name
        already exists, outcomes it is missing are merged into it.

        Returns:
            Variable: the variable now stored under that name.
        """
        existing = self.variables.get(variable.name)
        if existing is None:
            self.variables[variable.name] = variable
            self.graph.add_node(variable.name)
            for parent in variable.parents:
                self.graph.add_edge(parent, variable.name)
            log.debug(f"Added variable: {variable.name} {variable.outcomes}")
            return variable

        log.warning(f"Variable {variable.name} already exists. Merging outcomes.")
        for outcome in variable.outcomes:
            if outcome not in existing.outcomes:
                existing.add_outcome(outcome)
        return existing

    def add_node(self, name, outcomes):
        """Shorthand for add_variable(Variable(name, outcomes))."""
        return self.add_variable(Variable(name, outcomes))

    def add_edge(self, parent, child):
        """Add a directed edge from parent to child, appending parent to the child's parents."""
        if parent not in self.variables:
            log.error(f"Parent node {parent} does not exist. Add it first.")
            raise ConfigurationError(f"Unknown variable '{parent}'.")
        if child not in self.variables:
            log.error(f"Child node {child} does not exist. Add it first.")
            raise ConfigurationError(f"Unknown variable '{child}'.")
        if parent in self.variables[child].parents:
            log.error(f"Edge {parent} -> {child} already exists.")
            raise ConfigurationError(f"'{parent}' is already a parent of '{child}'.")

        self.graph.add_edge(parent, child)
        if not nx.is_directed_acyclic_graph(self.graph):
            self.graph.remove_edge(parent, child)
            log.error(f"Adding edge {parent} -> {child} creates a cycle. Edge removed.")
            raise ConfigurationError("Cycles are not allowed in a Bayesian Network (DAG).")

        self.variables[child].add_parent(parent)
        log.debug(f"Added edge: {parent} -> {child}")

    def set_cpt(self, name, cpt):
        """
        Set the flat conditional probability table for a variable.

        The layout is mixed-radix with the variable itself as the fastest
        changing digit, preceded by its parents from last to first. For
        B with parent A, outcomes [T, F] each:
            [P(B=T|A=T), P(B=F|A=T), P(B=T|A=F), P(B=F|A=F)]
        """
        variable = self.get_variable(name)
        variable.set_cpt(cpt)
        log.debug(f"Set CPT for node: {name}")

    def validate(self):
        """
        Check that every variable is ready for inference.

        Raises:
            ConfigurationError: on empty outcomes, dangling parents or a CPT
                whose length is not |variable| * prod(|parent|), or a cycle.
        """
        if not nx.is_directed_acyclic_graph(self.graph):
            raise ConfigurationError("Cycles are not allowed in a Bayesian Network (DAG).")

        for variable in self.variables.values():
            if not variable.outcomes:
                raise ConfigurationError(f"Variable '{variable.name}' has no outcomes.")
            expected = variable.domain_size
            for parent in variable.parents:
                if parent not in self.variables:
                    raise ConfigurationError(
                        f"Parent '{parent}' of '{variable.name}' is not in the network.")
                expected *= self.variables[parent].domain_size
            if variable.cpt is None:
                raise ConfigurationError(f"No CPT set for variable '{variable.name}'.")
            if len(variable.cpt) != expected:
                log.error(f"CPT for {variable.name} has {len(variable.cpt)} entries, expected {expected}.")
                raise ConfigurationError(
                    f"CPT length mismatch for '{variable.name}': "
                    f"got {len(variable.cpt)}, expected {expected}.")

    # --- Lookup ---

    def get_variable(self, name):
        """
        Raises:
            ConfigurationError: if no variable has that name.
        """
        try:
            return self.variables[name]
        except KeyError:
            raise ConfigurationError(f"Unknown variable '{name}'.") from None

    def get_children(self, name):
        """Names of the variables that list `name` as a parent, in insertion order."""
        return [v.name for v in self.variables.values() if name in v.parents]

    # --- Traversal ---

    def topological_order(self):
        """
        Variables ordered so that every parent precedes its children.

        Depth-first over the variables in insertion order, visiting each
        variable's parents (in declared order) before the variable itself.
        """
        ordered = []
        visited = set()

        for root in self.variables.values():
            if root.name in visited:
                continue
            visited.add(root.name)
            stack = [(root, iter(root.parents))]
            while stack:
                variable, parents = stack[-1]
                for parent_name in parents:
                    if parent_name not in visited:
                        visited.add(parent_name)
                        parent = self.get_variable(parent_name)
                        stack.append((parent, iter(parent.parents)))
                        break
                else:
                    stack.pop()
                    ordered.append(variable)

        return ordered

    def find_relevant_variables(self, query_var, evidence):
        """
        The query variable and the evidence variables, closed under ancestors.
        Only these variables influence P(query | evidence).
        """
        relevant = {query_var, *evidence}
        queue = deque(relevant)

        while queue:
            current = queue.popleft()
            variable = self.variables.get(current)
            if variable is None:
                continue
            for parent in variable.parents:
                if parent not in relevant:
                    relevant.add(parent)
                    queue.append(parent)

        return relevant

    def is_descendant(self, ancestor, target):
        """True if `target` can be reached from `ancestor` along child edges."""
        if ancestor not in self.graph or target not in self.graph:
            return False
        return target in nx.descendants(self.graph, ancestor)

    # --- Probabilities ---

    def joint_probability(self, assignment, counter=None):
        """
        Compute the joint probability of a full assignment.

        Args:
            assignment (dict): maps every variable name to an outcome value,
                e.g. {'A': 'T', 'B': 'F'}.
            counter: optional operation counter; one multiplication is
                recorded per CPT entry after the first.
        """
        prob = 1.0
        first = True

        for variable in self.topological_order():
            if variable.name not in assignment:
                log.error(f"Missing value for node {variable.name} in joint probability calculation.")
                raise ConfigurationError(f"Missing value for variable '{variable.name}'.")

            prob *= variable.get_probability(assignment, self.variables)
            if not first and counter is not None:
                counter.record_multiplication()
            first = False

        return prob

    # --- Visualization ---

    def draw_network(self, save_path=None):
        """Draw the Bayesian network using networkx"""
        plt.figure(figsize=(10, 7))
        try:
            # Use a layout that respects the hierarchy
            pos = nx.drawing.nx_agraph.graphviz_layout(self.graph, prog='dot')
        except ImportError:
            log.warning("pygraphviz not found. Using spring_layout. "
                        "For a hierarchical layout, run: pip install pygraphviz")
            pos = nx.spring_layout(self.graph, seed=0)

        nx.draw(self.graph, pos, with_labels=True, node_size=4000,
                node_color='#a0cbe2', font_size=12, font_weight='bold',
                arrowsize=20)
        plt.title("Bayesian Network Structure")

        if save_path:
            plt.savefig(save_path)
            log.info(f"Network graph saved to {save_path}")
        else:
            plt.show()
        plt.close()
