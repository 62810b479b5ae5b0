"""UDV: query-model compiler and schema-driven value coercion for a universal data viewer."""

__version__ = "0.1.0"
