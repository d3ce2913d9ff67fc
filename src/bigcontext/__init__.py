"""bigcontext - run a prompt over text files larger than a model's context window."""

__version__ = "0.1.0"
