"""
Associators decide the canonical path of a module and the bundle it is
served in.

Associators form a chain of responsibility: a `StaticAssociator` answers
from its table and hands misses to the next associator, which defaults to
`IdentityAssociator`.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
import re

from service_bundler.app.associators.table import AssociationTable, Member


class Associator(ABC):
    """Canonical path and bundle membership policy."""

    @abstractmethod
    def preferred_path(self, module_path: str) -> str:
        """Canonical form of `module_path`."""

    @abstractmethod
    def associated_module_paths(self, module_path: str) -> List[Member]:
        """Members of the bundle `module_path` belongs to, in serving order."""


class IdentityAssociator(Associator):
    """No bundling: every module is its own canonical, single-member bundle."""

    def preferred_path(self, module_path: str) -> str:
        return module_path

    def associated_module_paths(self, module_path: str) -> List[Member]:
        return [module_path]


class StaticAssociator(Associator):
    """Associations from a prebuilt `AssociationTable`."""

    def __init__(self, table: AssociationTable, next_associator: Optional[Associator] = None):
        self.table = table
        self.next_associator = next_associator or IdentityAssociator()

    def preferred_path(self, module_path: str) -> str:
        bundle = self.table.bundle_for(module_path)
        if bundle is not None:
            return bundle
        return self.next_associator.preferred_path(module_path)

    def associated_module_paths(self, module_path: str) -> List[Member]:
        module_path = self.preferred_path(module_path)
        members = self.table.members_of(module_path)
        if members is not None:
            return list(members)
        return self.next_associator.associated_module_paths(module_path)


class SimpleAssociator(Associator):
    """
    Convention based bundles for when no manifest is available.

    `lib/thing`, `lib/thing.js` and `lib/thing/index.js` are served together
    under the name `lib/thing`.
    """

    SUFFIX_PATTERN = re.compile(r"(?:(?:^|/)index\.js|\.js)?/*$")

    def preferred_path(self, module_path: str) -> str:
        return self.associated_module_paths(module_path)[0]

    def associated_module_paths(self, module_path: str) -> List[Member]:
        base, stripped = module_path, None
        while stripped != base:
            stripped, base = base, self.SUFFIX_PATTERN.sub("", base, count=1)
        return [base, f"{base}.js", f"{base}/index.js"]
