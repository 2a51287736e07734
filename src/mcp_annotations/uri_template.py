"""URI templates with ``{variable}`` placeholders."""

from __future__ import annotations

import re
from functools import cached_property

VARIABLE_PATTERN = re.compile(r"\{([^/]+?)\}")


class UriTemplate:
    """
    A resource URI pattern such as ``user://{name}/profile``.

    Each variable matches one path segment (no ``/``). Matching is against
    the whole URI.
    """

    def __init__(self, template: str):
        self.template = template

    @staticmethod
    def is_template(uri: str) -> bool:
        """Check whether a URI contains at least one ``{variable}``."""
        return bool(uri) and VARIABLE_PATTERN.search(uri) is not None

    @cached_property
    def variable_names(self) -> list[str]:
        """Variable names in order of appearance."""
        return VARIABLE_PATTERN.findall(self.template)

    @cached_property
    def _pattern(self) -> re.Pattern[str]:
        parts: list[str] = []
        seen: set[str] = set()
        position = 0
        for match in VARIABLE_PATTERN.finditer(self.template):
            name = match.group(1)
            parts.append(re.escape(self.template[position : match.start()]))
            if name in seen:
                parts.append(f"(?P={self._group(name)})")
            else:
                parts.append(f"(?P<{self._group(name)}>[^/]+)")
                seen.add(name)
            position = match.end()
        parts.append(re.escape(self.template[position:]))
        return re.compile("".join(parts))

    def _group(self, name: str) -> str:
        # Group names must be identifiers; index keeps them unique
        return f"v{self.variable_names.index(name)}"

    def matches(self, uri: str) -> bool:
        """Check whether a concrete URI matches this template."""
        return self._pattern.fullmatch(uri) is not None

    def extract(self, uri: str) -> dict[str, str]:
        """
        Extract variable values from a concrete URI.

        Returns:
            Mapping of variable name to value, empty when the URI does not match.
        """
        match = self._pattern.fullmatch(uri)
        if match is None:
            return {}
        return {
            name: match.group(self._group(name)) for name in dict.fromkeys(self.variable_names)
        }

    def expand(self, values: dict[str, str]) -> str:
        """Substitute variable values into the template."""
        return VARIABLE_PATTERN.sub(lambda m: str(values[m.group(1)]), self.template)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, UriTemplate) and other.template == self.template

    def __hash__(self) -> int:
        return hash(self.template)

    def __repr__(self) -> str:
        return f"UriTemplate({self.template!r})"
