"""aiworkflow: AI provider routing for academic writing workflows."""

__version__ = "0.1.0"
