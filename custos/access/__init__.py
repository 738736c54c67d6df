"""Access scope resolution over identities and delegation edges."""

from custos.access.models import AccessScope
from custos.access.resolver import AccessScopeResolver

__all__ = ["AccessScope", "AccessScopeResolver"]
