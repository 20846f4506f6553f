"""
Placeholder resolver — renders ``{{...}}`` tokens in display text.

Recognized tokens:

    {{hosts.all}}                all hosts of the service/component, ", " joined
    {{hosts.master}}             the component's master host
    {{version}}                  the version being moved to
    {{direction.text}}           upgrade / downgrade
    {{direction.past}}           upgraded / downgraded
    {{direction.plural}}         upgrades / downgrades
    {{direction.verb}}           upgrading / downgrading
    (each direction token also has a ``.proper`` capitalized form)

Anything else, e.g. ``{{hdfs-site/dfs.namenode.http-address}}``, is
looked up in the cluster's desired configuration. Tokens without a value
are left exactly as written.
"""

from __future__ import annotations

import logging
import re
from enum import StrEnum

from rollplan.adapters.base import ConfigStore
from rollplan.core.models.context import UpgradeContext

logger = logging.getLogger(__name__)

PLACEHOLDER_REGEX = re.compile(r"(\{\{.*?\}\})")


class Placeholder(StrEnum):
    """Fixed tokens, by key between the braces."""

    OTHER = ""
    HOST_ALL = "hosts.all"
    HOST_MASTER = "hosts.master"
    VERSION = "version"
    DIRECTION_TEXT = "direction.text"
    DIRECTION_TEXT_PROPER = "direction.text.proper"
    DIRECTION_PAST = "direction.past"
    DIRECTION_PAST_PROPER = "direction.past.proper"
    DIRECTION_PLURAL = "direction.plural"
    DIRECTION_PLURAL_PROPER = "direction.plural.proper"
    DIRECTION_VERB = "direction.verb"
    DIRECTION_VERB_PROPER = "direction.verb.proper"

    @property
    def token(self) -> str:
        return "{{" + self.value + "}}"

    @classmethod
    def find(cls, token: str) -> Placeholder:
        for placeholder in cls:
            if placeholder is not cls.OTHER and placeholder.token == token:
                return placeholder
        return cls.OTHER


# direction placeholder -> (Direction method name, proper)
_DIRECTION_FORMS: dict[Placeholder, tuple[str, bool]] = {
    Placeholder.DIRECTION_TEXT: ("text", False),
    Placeholder.DIRECTION_TEXT_PROPER: ("text", True),
    Placeholder.DIRECTION_PAST: ("past", False),
    Placeholder.DIRECTION_PAST_PROPER: ("past", True),
    Placeholder.DIRECTION_PLURAL: ("plural", False),
    Placeholder.DIRECTION_PLURAL_PROPER: ("plural", True),
    Placeholder.DIRECTION_VERB: ("verb", False),
    Placeholder.DIRECTION_VERB_PROPER: ("verb", True),
}


def find_tokens(source: str) -> list[str]:
    """Distinct tokens in ``source``, in order of first appearance."""
    return list(dict.fromkeys(PLACEHOLDER_REGEX.findall(source)))


class PlaceholderResolver:
    """Renders tokens for one upgrade context.

    Args:
        context: The upgrade context (direction, version, hosts).
        config_store: Fallback lookup for configuration tokens. Without
            one, configuration tokens stay unresolved.
    """

    def __init__(self, context: UpgradeContext, config_store: ConfigStore | None = None):
        self._context = context
        self._config_store = config_store

    def render(
        self,
        source: str,
        service: str | None = None,
        component: str | None = None,
    ) -> str:
        """Replace every resolvable token in ``source``.

        Host tokens need both ``service`` and ``component``.
        """
        result = source
        for token in find_tokens(source):
            value = self.resolve(token, service, component)
            if value is not None:
                result = result.replace(token, value)
        return result

    def resolve(
        self,
        token: str,
        service: str | None = None,
        component: str | None = None,
    ) -> str | None:
        """The value for a single ``{{...}}`` token, or None."""
        placeholder = Placeholder.find(token)
        context = self._context

        if placeholder in (Placeholder.HOST_ALL, Placeholder.HOST_MASTER):
            if not service or not component:
                return None
            hosts_type = context.resolver.resolve(service, component)
            if hosts_type is None:
                return None
            if placeholder is Placeholder.HOST_ALL:
                return ", ".join(hosts_type.hosts)
            return hosts_type.master

        if placeholder is Placeholder.VERSION:
            return context.repository_version.version

        if placeholder in _DIRECTION_FORMS:
            form, proper = _DIRECTION_FORMS[placeholder]
            return getattr(context.direction, form)(proper)

        if self._config_store is None:
            return None
        value = self._config_store.get_placeholder_value(context.cluster, token)
        if value is None:
            logger.debug("No value for placeholder %s", token)
        return value
