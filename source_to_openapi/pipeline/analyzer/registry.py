"""
Schema registry and composer.

Accumulates resolved schemas keyed by their declared (real) name. At the end
of a run, finalize() rewrites references to schemas that carry a custom name
and publishes every entry under its custom name, or its real name.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator

from ..errors import SchemaConflictError
from .equality import structurally_equal
from .schema_nodes import ANY_VALUE, REF_PREFIX, ComposedSchema, Schema, SchemaNode, any_value_schema, ref_name, ref_path

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """Schemas of one compilation run, keyed by real name."""

    def __init__(self):
        self._schemas: dict[str, Schema] = {ANY_VALUE: any_value_schema()}
        # (real name, registered schema, rejected schema)
        self._conflicts: list[tuple[str, Schema, Schema]] = []

    def register(self, real_name: str, schema: Schema, replace: bool = False) -> None:
        """
        Register a schema under its real name.

        A custom display name is read from `schema.custom_name`; it is
        metadata, never a second key.

        Args:
            real_name: The declared name
            schema: The resolved schema
            replace: Overwrite an existing entry instead of checking it
        """
        schema.real_name = real_name
        existing = self._schemas.get(real_name)
        if existing is not None and not replace:
            if not structurally_equal(existing, schema) or existing.custom_name != schema.custom_name:
                logger.error("Schema %s is already registered with a different content", real_name)
                self._conflicts.append((real_name, existing, schema))
            return
        self._schemas[real_name] = schema

    def get(self, real_name: str) -> Schema | None:
        return self._schemas.get(real_name)

    def __contains__(self, real_name: str) -> bool:
        return real_name in self._schemas

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)

    def published_name(self, real_name: str) -> str:
        """Name under which a registered schema appears in the document."""
        schema = self._schemas.get(real_name)
        if schema is not None and schema.custom_name:
            return schema.custom_name
        return real_name

    def finalize(self) -> dict[str, Schema]:
        """
        Rewrite references and build the published schema map.

        The registry itself is left untouched: every published schema is a
        rewritten copy, so calling finalize() again gives the same result.

        Returns:
            Published name -> schema, sorted by name

        Raises:
            SchemaConflictError: If a name was declared twice with different
                content, or two schemas publish under the same name
        """
        if self._conflicts:
            names = sorted({name for name, _, _ in self._conflicts})
            raise SchemaConflictError("schema declared more than once with different content", ", ".join(names))

        published: dict[str, Schema] = {}
        sources: dict[str, str] = {}
        for real_name, schema in self._schemas.items():
            if real_name == ANY_VALUE:
                published[real_name] = copy.deepcopy(schema)
                sources[real_name] = real_name
                continue

            rewritten = copy.deepcopy(schema)
            if isinstance(rewritten, ComposedSchema):
                for member in rewritten.all_of:
                    self._rewrite_refs(member)
            else:
                self._rewrite_refs(rewritten)

            name = rewritten.custom_name or real_name
            if name in published and not structurally_equal(published[name], rewritten):
                raise SchemaConflictError(
                    f"schemas {sources[name]} and {real_name} are both published as {name}",
                    name,
                )
            published[name] = rewritten
            sources[name] = real_name

        return dict(sorted(published.items()))

    def _rewrite_refs(self, node: SchemaNode | None) -> None:
        """Point references at custom names.

        Only the owned tree is walked; a reference is a leaf and is never
        followed, so reference cycles cannot recurse.
        """
        if node is None:
            return

        if node.ref:
            if node.ref.startswith(REF_PREFIX):
                target = self._schemas.get(ref_name(node.ref))
                if target is not None and target.custom_name:
                    node.ref = ref_path(target.custom_name)
            return

        for prop in node.properties.values():
            self._rewrite_refs(prop)
        self._rewrite_refs(node.items)
        self._rewrite_refs(node.additional_properties)
        for member in (*node.one_of, *node.any_of, *node.all_of):
            self._rewrite_refs(member)
