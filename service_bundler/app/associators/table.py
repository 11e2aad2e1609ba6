"""
Association tables: which modules are served together, and under what name.

A table holds two views of the same associations:

    bundles:  {"/app/main.js": ("/app/main.js", "/app/util.js", Alias("/app", "/app/main.js"))}
    members:  {"/app/main.js": "/app/main.js", "/app/util.js": "/app/main.js"}

The first lists the members of each bundle in serving order, the second maps
every plain member to its canonical bundle. Aliases are kept as indirections
and resolved on lookup.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from shared.errors import AliasCycleError, ManifestError


@dataclass(frozen=True)
class Alias:
    """
    An alternative name for a module.

    `Alias("jquery", "jquery/dist/jquery.min.js")` lets loaders request
    `jquery` and receive `jquery/dist/jquery.min.js`; the bundle payload
    carries the alias as a string entry pointing at its target.
    """

    alias: str
    target: str

    def __repr__(self) -> str:
        return f"{self.alias!r} -> {self.target!r}"


Member = Union[str, Alias]

SimpleMapping = Union[Mapping[str, Sequence[Member]], Iterable[Tuple[str, Sequence[Member]]]]

# (bundle names, {member: (primary bundle index, inclusion flag per bundle)})
ComplexMapping = Tuple[List[str], Dict[str, Tuple[int, List[bool]]]]


def member_name(member: Member) -> str:
    return member.alias if isinstance(member, Alias) else member


class AssociationTable:
    """Immutable bundle <-> member associations with alias indirections."""

    def __init__(
        self,
        bundles: Mapping[str, Sequence[Member]],
        members: Mapping[str, str],
        indirections: Optional[Mapping[str, Optional[str]]] = None,
    ):
        self._bundles = MappingProxyType({name: tuple(items) for name, items in bundles.items()})
        self._members = MappingProxyType(dict(members))
        self._indirections = MappingProxyType(dict(indirections or {}))

    @property
    def bundles(self) -> Mapping[str, Tuple[Member, ...]]:
        return self._bundles

    @property
    def members(self) -> Mapping[str, str]:
        return self._members

    @property
    def aliases(self) -> Dict[str, str]:
        return {name: target for name, target in self._indirections.items() if target is not None}

    @classmethod
    def from_simple_mapping(cls, mapping: SimpleMapping) -> "AssociationTable":
        """
        Build a table from `{bundle: [member, ...]}`.

        `mapping` may also be a sequence of `(bundle, members)` pairs so that
        duplicate bundle definitions can be detected.
        """
        pairs = list(mapping.items()) if isinstance(mapping, Mapping) else list(mapping)
        bundle_names = {bundle for bundle, _ in pairs}

        bundles: Dict[str, Tuple[Member, ...]] = {}
        members: Dict[str, str] = {}
        indirections: Dict[str, Optional[str]] = {}

        for bundle, items in pairs:
            if bundle in bundles:
                raise ManifestError(f"bundle {bundle!r} already defined", details={"bundle": bundle})
            bundles[bundle] = tuple(items)

            for item in items:
                name = member_name(item)
                target = item.target if isinstance(item, Alias) else None
                if name in indirections and indirections[name] != target:
                    raise ManifestError(f"conflicting definition of module {name!r}", details={"module": name})
                indirections[name] = target

                if isinstance(item, Alias):
                    continue
                # Bundle names always stay in their own bundle
                if name not in bundle_names or name == bundle:
                    members[name] = bundle

        return cls(bundles, members, indirections)

    @classmethod
    def from_complex_mapping(cls, packages: Sequence[str],
                             associations: Mapping[str, Tuple[int, Sequence[bool]]]) -> "AssociationTable":
        """Inverse of `to_complex_mapping()`."""
        seen = set()
        for index, package in enumerate(packages):
            if package is None:
                raise ManifestError("bundle without a name", details={"index": index})
            if package in seen:
                raise ManifestError(f"bundle {package!r} already defined", details={"bundle": package})
            if package not in associations:
                raise ManifestError(f"bundle {package!r} has no primary module", details={"bundle": package})
            if associations[package][0] != index:
                raise ManifestError(f"bundle {package!r} disagrees with its primary module",
                                    details={"bundle": package})
            seen.add(package)

        bundles: Dict[str, List[str]] = {}
        members: Dict[str, str] = {}
        for path, (primary, inclusions) in associations.items():
            members[path] = packages[primary]
            for index, included in enumerate(inclusions):
                if included:
                    bundles.setdefault(packages[index], []).append(path)

        return cls(bundles, members)

    def to_complex_mapping(self) -> ComplexMapping:
        """
        Compact form: one index per bundle and an inclusion vector per member.

        Alias entries have no place in this form and are left out.
        """
        packages = list(self._bundles)
        mapping: Dict[str, Tuple[int, List[bool]]] = {}

        for index, package in enumerate(packages):
            for item in self._bundles[package]:
                if isinstance(item, Alias):
                    continue
                _, flags = mapping.get(item, (index, [False] * len(packages)))
                flags[index] = True
                mapping[item] = (index, flags)

        for path, bundle in self._members.items():
            if path in mapping:
                mapping[path] = (packages.index(bundle), mapping[path][1])

        return packages, mapping

    def resolve(self, module_path: str) -> str:
        """Follow alias indirections until a non-aliased path is reached."""
        chain = [module_path]
        seen = {module_path}
        real, target = module_path, self._indirections.get(module_path)
        while target is not None:
            chain.append(target)
            if target in seen:
                raise AliasCycleError(module_path, chain)
            seen.add(target)
            real, target = target, self._indirections.get(target)
        return real

    def bundle_for(self, module_path: str) -> Optional[str]:
        """Canonical bundle name of a member or alias, `None` when unknown."""
        if self._indirections.get(module_path) is not None:
            real = self.resolve(module_path)
            return self._members.get(real, real)
        return self._members.get(module_path)

    def members_of(self, bundle: str) -> Optional[Tuple[Member, ...]]:
        return self._bundles.get(bundle)

    def validate(self) -> "AssociationTable":
        """Resolve every alias once so that cycles fail at configuration time."""
        for name in self.aliases:
            self.resolve(name)
        return self
