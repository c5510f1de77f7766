"""
Exact inference engines.

Three engines answer the same question, P(query = value | evidence):

- EnumerationInference sums the full joint over every hidden variable.
- VariableElimination with LexicographicOrdering eliminates hidden
  variables in name order.
- VariableElimination with MinFillOrdering picks the cheapest variable to
  eliminate at each step.

All of them count the elementary multiplications and additions they
perform, so their costs can be compared on the same query.
"""

import heapq
import logging
from functools import partial
from itertools import product

from .exceptions import ConfigurationError, InconsistencyError
from .factor import Factor
from .utils import ascii_sum, stable_hash

log = logging.getLogger(__name__)


class OperationCounter:
    """Counts multiplications and additions performed during inference."""

    def __init__(self):
        self.multiplications = 0
        self.additions = 0

    def record_multiplication(self):
        self.multiplications += 1

    def record_addition(self):
        self.additions += 1

    def reset(self):
        self.multiplications = 0
        self.additions = 0


class InferenceEngine(OperationCounter):
    """
    Common contract of every engine.

    An engine holds a read-only reference to a validated network and its
    own operation counters, which are reset at the start of every query.
    Use one engine per thread.
    """

    name = "engine"

    def __init__(self, network):
        super().__init__()
        network.validate()
        self.network = network

    def query(self, query_var, query_value, evidence=None):
        """
        Computes P(query_var = query_value | evidence).

        Args:
            query_var (str): name of the queried variable.
            query_value (str): one of its outcomes.
            evidence (dict): observed variable name -> outcome.

        Returns:
            float: the conditional probability, or NaN if the evidence has
                probability zero.
        """
        raise NotImplementedError

    def distribution(self, query_var, evidence=None):
        """
        The full posterior over the query variable, {outcome: probability}.
        Counters afterwards hold the cost of the last outcome's query only.
        """
        variable = self.network.get_variable(query_var)
        return {value: self.query(query_var, value, evidence) for value in variable.outcomes}

    # --- Shared helpers ---

    def _prepare(self, query_var, query_value, evidence):
        """Validates a query and returns it with outcome values in canonical form."""
        variable = self.network.get_variable(query_var)
        query_value = variable.outcomes[variable.outcome_index(query_value)]

        canonical = {}
        for name, value in (evidence or {}).items():
            observed = self.network.get_variable(name)
            canonical[name] = observed.outcomes[observed.outcome_index(value)]

        if query_var in canonical:
            raise ConfigurationError(
                f"Query variable '{query_var}' also appears in the evidence.")

        return variable, query_value, canonical

    def _evidence_matches_parents(self, variable, evidence):
        return set(evidence) == set(variable.parents)

    def _direct_lookup(self, variable, query_value, evidence):
        assignment = dict(evidence)
        assignment[variable.name] = query_value
        prob = variable.get_probability(assignment, self.network.variables)
        log.info(f"[{self.name}] Answered P({variable.name}={query_value} | {evidence}) "
                 f"directly from the CPT: {prob:.6f}")
        return prob

    def _ratio(self, numerator, denominator, query_var, query_value, evidence):
        if denominator == 0:
            log.warning(f"[{self.name}] Denominator is zero for P({query_var}={query_value} | {evidence}). "
                        "Evidence has zero probability; result is undefined.")
            return float("nan")

        posterior_prob = numerator / denominator
        log.info(f"[{self.name}] P({query_var}={query_value} | {evidence}) = {posterior_prob:.6f} "
                 f"(additions={self.additions}, multiplications={self.multiplications})")
        return posterior_prob


class EnumerationInference(InferenceEngine):
    """
    Brute-force baseline: sums the joint probability over every assignment
    of the hidden variables of the whole network.
    """

    name = "enumeration"

    def query(self, query_var, query_value, evidence=None):
        self.reset()
        variable, query_value, evidence = self._prepare(query_var, query_value, evidence)
        log.info(f"[{self.name}] Computing P({query_var}={query_value} | {evidence})...")

        # Direct CPT lookup when exactly the parents are observed
        if self._evidence_matches_parents(variable, evidence):
            return self._direct_lookup(variable, query_value, evidence)

        order = self.network.topological_order()
        hidden = [v for v in order if v.name not in evidence and v.name != query_var]
        assignments = 1
        for v in hidden:
            assignments *= v.domain_size
        log.debug(f"[{self.name}] {len(hidden)} hidden variables, "
                  f"{assignments} assignments each.")

        # Numerator: P(query_var=query_value, evidence)
        numerator = self._marginal(order, query_var, query_value, evidence, hidden)

        # Denominator: the numerator plus every other query outcome
        denominator = numerator
        for value in variable.outcomes:
            if value == query_value:
                continue
            denominator += self._marginal(order, query_var, value, evidence, hidden)
            self.record_addition()

        return self._ratio(numerator, denominator, query_var, query_value, evidence)

    def _marginal(self, order, query_var, value, evidence, hidden):
        """Sums the joint over hidden assignments, generated lazily in domain order."""
        hidden_names = [v.name for v in hidden]
        base = dict(evidence)
        base[query_var] = value

        total = 0.0
        for i, values in enumerate(product(*(v.outcomes for v in hidden))):
            assignment = dict(base)
            assignment.update(zip(hidden_names, values))
            total += self._joint(order, assignment)
            if i > 0:
                self.record_addition()
        return total

    def _joint(self, order, assignment):
        prob = 1.0
        first = True
        for variable in order:
            if variable.name not in assignment:
                continue
            prob *= variable.get_probability(assignment, self.network.variables)
            if not first:
                self.record_multiplication()
            first = False
        return prob


# --- Elimination orderings ---

class LexicographicOrdering:
    """
    Eliminates hidden variables in ascending name order and joins factors
    in ascending order of the character-code sum of their scope.
    """

    name = "lexicographic"

    def next_variable(self, hidden, factors, network):
        return min(hidden)

    def multiply(self, factors, counter):
        if not factors:
            return None
        ordered = sorted(factors, key=lambda f: ascii_sum(f.variables))
        result = ordered[0]
        for factor in ordered[1:]:
            result = result.join(factor, counter)
        return result


class MinFillOrdering:
    """
    Greedy ordering that eliminates, at each step, the variable whose
    elimination creates the smallest factor.

    Ties are broken by, in order: the number of factors mentioning the
    variable, the scope size of the largest such factor, the character-code
    sum of its name, and finally the name itself.
    """

    name = "min-fill"

    def score(self, candidate, factors, network):
        involved = [f for f in factors if candidate in f.variables]
        neighbors = {v for f in involved for v in f.variables}
        neighbors.discard(candidate)

        estimated_size = 1
        for name in neighbors:
            estimated_size *= network.get_variable(name).domain_size
        largest = max((len(f.variables) for f in involved), default=0)

        return (estimated_size, len(involved), largest, ascii_sum([candidate]), candidate)

    def next_variable(self, hidden, factors, network):
        return min(hidden, key=lambda name: self.score(name, factors, network))

    def multiply(self, factors, counter):
        """Joins the two smallest factors until one is left."""
        if not factors:
            return None

        heap = []
        for seq, factor in enumerate(factors):
            heapq.heappush(heap, (self._priority(factor), seq, factor))
        seq = len(factors)

        while len(heap) > 1:
            _, _, first = heapq.heappop(heap)
            _, _, second = heapq.heappop(heap)
            joined = first.join(second, counter)
            heapq.heappush(heap, (self._priority(joined), seq, joined))
            seq += 1

        return heap[0][2]

    @staticmethod
    def _priority(factor):
        return len(factor.variables), sum(stable_hash(v) for v in factor.variables)


ORDERINGS = {
    LexicographicOrdering.name: LexicographicOrdering,
    MinFillOrdering.name: MinFillOrdering,
}


class VariableElimination(InferenceEngine):
    """
    Variable elimination over the ancestors of the query and evidence.

    Args:
        network (BayesianNetwork): the network to query.
        ordering (str): "lexicographic" or "min-fill".
    """

    def __init__(self, network, ordering=LexicographicOrdering.name):
        super().__init__(network)
        if ordering not in ORDERINGS:
            raise ConfigurationError(
                f"Unknown elimination ordering '{ordering}'. Choose from {sorted(ORDERINGS)}.")
        self.ordering = ORDERINGS[ordering]()
        self.name = f"ve/{self.ordering.name}"

    def can_answer_from_cpt(self, variable, evidence):
        """
        True if the answer is a single CPT entry: exactly the parents are
        observed and no observed variable is a descendant of the query.
        """
        if not self._evidence_matches_parents(variable, evidence):
            return False
        return not any(self.network.is_descendant(variable.name, name) for name in evidence)

    def query(self, query_var, query_value, evidence=None):
        self.reset()
        variable, query_value, evidence = self._prepare(query_var, query_value, evidence)
        log.info(f"[{self.name}] Computing P({query_var}={query_value} | {evidence})...")

        relevant = self.network.find_relevant_variables(query_var, evidence)
        log.debug(f"[{self.name}] Relevant variables: {sorted(relevant)}")

        if self.can_answer_from_cpt(variable, evidence):
            return self._direct_lookup(variable, query_value, evidence)

        # 1. One factor per relevant variable, evidence restricted out
        factors = self._initial_factors(relevant, evidence)

        # 2. Eliminate hidden variables
        hidden = sorted(v for v in relevant if v != query_var and v not in evidence)
        while hidden:
            to_eliminate = self.ordering.next_variable(hidden, factors, self.network)
            hidden.remove(to_eliminate)

            related = [f for f in factors if to_eliminate in f.variables]
            if not related:
                continue
            factors = [f for f in factors if to_eliminate not in f.variables]

            joined = self.ordering.multiply(related, self)
            reduced = joined.sum_out(to_eliminate, self)
            log.debug(f"[{self.name}] Eliminated {to_eliminate}: joined {len(related)} factors "
                      f"into {len(joined)} rows, {reduced!r} remains.")

            if not reduced.is_trivial(evidence):
                factors.append(reduced)

        # 3. Multiply what is left; it must mention the query variable
        final_factor = self.ordering.multiply(factors, self)
        if final_factor is None or query_var not in final_factor.variables:
            log.error(f"[{self.name}] Final factor {final_factor!r} is missing query variable {query_var}.")
            raise InconsistencyError(f"Final factor is missing query variable: {query_var}")

        # 4. Numerator and denominator
        query_idx = final_factor.variables.index(query_var)
        numerator = 0.0
        denominator = 0.0
        seen_numerator = False
        seen_denominator = False

        for key, prob in final_factor.table.items():
            if key[query_idx] == query_value:
                numerator += prob
                if seen_numerator:
                    self.record_addition()
                seen_numerator = True

            denominator += prob
            if seen_denominator:
                self.record_addition()
            seen_denominator = True

        return self._ratio(numerator, denominator, query_var, query_value, evidence)

    def _initial_factors(self, relevant, evidence):
        network_vars = self.network.variables
        factors = []

        for variable in network_vars.values():
            if variable.name not in relevant:
                continue

            factor = Factor.from_variable(variable, evidence, network_vars)
            for name, value in evidence.items():
                factor = factor.restrict(name, value)

            if factor.is_trivial(evidence):
                log.debug(f"[{self.name}] Dropped trivial factor for {variable.name}.")
                continue
            factors.append(factor)

        return factors


# --- Registry ---

ENGINES = {
    "enumeration": EnumerationInference,
    "ve": partial(VariableElimination, ordering=LexicographicOrdering.name),
    "heuristic": partial(VariableElimination, ordering=MinFillOrdering.name),
}

ALGORITHM_NUMBERS = {1: "enumeration", 2: "ve", 3: "heuristic"}


def create_engine(method, network):
    """
    Builds an engine by name ("enumeration", "ve", "heuristic") or by
    algorithm number (1, 2, 3).
    """
    method = ALGORITHM_NUMBERS.get(method, method)
    if method not in ENGINES:
        raise ConfigurationError(f"Unknown inference method '{method}'. Choose from {sorted(ENGINES)}.")
    return ENGINES[method](network)
