"""table-dao — generic table repository over a fluent SQL query builder."""

__version__ = "0.1.0"
