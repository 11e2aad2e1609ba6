"""
Associators package.

- table: `AssociationTable`, `Alias` and the simple/complex mapping forms.
- associators: Identity, Static (table backed) and Simple (convention)
  associators.
"""

from .table import Alias, AssociationTable, Member, member_name
from .associators import Associator, IdentityAssociator, StaticAssociator, SimpleAssociator

__all__ = [
    "Alias",
    "AssociationTable",
    "Member",
    "member_name",
    "Associator",
    "IdentityAssociator",
    "StaticAssociator",
    "SimpleAssociator",
]
