import logging
from itertools import product

log = logging.getLogger(__name__)


class Factor:
    """
    Represents a factor in the variable elimination algorithm.

    A factor is defined over an ordered list of variables (its scope) and
    stores a probability for combinations of their values. Rows with
    probability 0 may be left out of the table; lookups treat a missing
    row as 0. Factors are never modified after construction, every
    operation returns a new Factor.
    """

    def __init__(self, variables, table=None):
        """
        Initialize a Factor.

        Args:
            variables (list): variable names in scope order, e.g. ['A', 'B'].
            table (dict): maps value tuples (one value per scope variable,
                in scope order) to probabilities,
                e.g. {('T', 'T'): 0.9, ('T', 'F'): 0.1, ...}
        """
        self.variables = list(variables)
        self.table = dict(table or {})

    def __str__(self):
        return f"Factor({self.variables}) \n{self.table}"

    def __repr__(self):
        return f"Factor({self.variables}, rows={len(self.table)})"

    def __len__(self):
        return len(self.table)

    @classmethod
    def from_variable(cls, variable, evidence, network_vars):
        """
        Builds the factor for P(variable | parents) from its CPT.

        The scope is the variable's parents followed by the variable itself.
        Evidence variables in scope keep only their observed value; every
        other variable ranges over its full domain.

        Args:
            variable (Variable): the variable whose CPT is tabulated.
            evidence (dict): observed variable name -> value.
            network_vars (dict): variable name -> Variable.
        """
        scope = list(variable.parents) + [variable.name]
        domains = []
        for name in scope:
            if name in evidence:
                domains.append([evidence[name]])
            else:
                domains.append(network_vars[name].outcomes)

        table = {}
        for values in product(*domains):
            prob = variable.get_probability(dict(zip(scope, values)), network_vars)
            if prob != 0.0:
                table[values] = prob

        return cls(scope, table)

    # --- Queries ---

    def get_assignment_prob(self, assignment):
        """Gets prob for an assignment dict covering the whole scope."""
        key = tuple(assignment[var] for var in self.variables)
        return self.table.get(key, 0.0)

    def is_empty(self):
        return not self.table

    def is_trivial(self, evidence):
        """
        True if the factor holds a single row over variables that are all
        observed, i.e. it carries nothing the evidence does not already say.
        """
        if len(self.table) != 1:
            return False
        return all(var in evidence for var in self.variables)

    def total(self):
        return sum(self.table.values())

    # --- Operations ---

    def restrict(self, variable, value):
        """
        Fixes `variable` to `value` and drops it from the scope.
        Restricting a variable that is not in scope returns an equal factor.
        """
        if variable not in self.variables:
            return Factor(self.variables, self.table)

        var_index = self.variables.index(variable)
        new_vars = [v for v in self.variables if v != variable]
        new_table = {}
        for key, prob in self.table.items():
            if key[var_index] == value:
                new_key = key[:var_index] + key[var_index + 1:]
                new_table[new_key] = prob

        return Factor(new_vars, new_table)

    def join(self, other, counter=None):
        """
        Multiplies this factor with another one.

        The new scope is this factor's scope followed by the variables of
        `other` not already present. Every pair of rows that agree on the
        shared variables produces one row; one multiplication is recorded
        per produced row.
        """
        shared = [v for v in other.variables if v in self.variables]
        self_idx = [self.variables.index(v) for v in shared]
        other_idx = [other.variables.index(v) for v in shared]
        extra_idx = [i for i, v in enumerate(other.variables) if v not in self.variables]
        new_vars = self.variables + [other.variables[i] for i in extra_idx]

        # Index the other factor's rows by their values on the shared variables
        buckets = {}
        for key, prob in other.table.items():
            buckets.setdefault(tuple(key[i] for i in other_idx), []).append((key, prob))

        new_table = {}
        for key1, prob1 in self.table.items():
            for key2, prob2 in buckets.get(tuple(key1[i] for i in self_idx), ()):
                new_key = key1 + tuple(key2[i] for i in extra_idx)
                if new_key in new_table:
                    continue
                if counter is not None:
                    counter.record_multiplication()
                new_table[new_key] = prob1 * prob2

        return Factor(new_vars, new_table)

    def sum_out(self, variable, counter=None):
        """
        Marginalizes `variable` out of the factor.

        Rows that agree on every other variable are summed into one; one
        addition is recorded per row merged into an existing group.
        """
        var_index = self.variables.index(variable)
        new_vars = [v for v in self.variables if v != variable]
        new_table = {}

        for key, prob in self.table.items():
            new_key = key[:var_index] + key[var_index + 1:]
            if new_key in new_table:
                new_table[new_key] += prob
                if counter is not None:
                    counter.record_addition()
            else:
                new_table[new_key] = prob

        return Factor(new_vars, new_table)

    def normalize(self):
        """Normalizes a factor so its probabilities sum to 1."""
        total = self.total()
        if total == 0:
            log.warning(f"Cannot normalize factor over {self.variables}: rows sum to zero.")
            return Factor(self.variables, self.table)

        return Factor(self.variables, {key: val / total for key, val in self.table.items()})
