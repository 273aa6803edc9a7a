"""Problem data for the two-stage MILP solved by the Benders loop."""

from .instance import BendersInstance, random_instance, worked_example  # noqa: F401

__all__ = ["BendersInstance", "random_instance", "worked_example"]
