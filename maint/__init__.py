"""Release-branch maintenance tooling for multi-repository simulations."""

__version__ = "0.3.0"
