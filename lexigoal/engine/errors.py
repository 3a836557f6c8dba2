"""Engine error types."""


class TableauStateError(RuntimeError):
    """A tableau reached a solver in a state its own invariants forbid.

    Signals caller-corrupted state (e.g. a variable outside its bounds),
    as opposed to an infeasible problem, which is reported as a status.
    """
