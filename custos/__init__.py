"""Custos: audit trail and hierarchical access scopes for a multi-tenant CRM.

Two independent mechanisms share the identity model:
- the audit trail engine records every mutation of monitored entities
- the access scope resolver computes which companies and end-clients an
  actor may see from explicit delegation edges
"""

__version__ = "0.1.0"
