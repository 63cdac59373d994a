"""htmlrules - declarative rule-driven HTML linter."""

__version__ = "0.3.0"
