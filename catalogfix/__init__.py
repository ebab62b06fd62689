"""catalogfix — version reconciliation and self-repair for package manifest catalogs."""

__version__ = "0.1.0"
