"""
Reconciliation of desired settings into the persisted openclaw.json document.

Every managed path is described by a rule ``(path, policy, value)``. The
policy decides what happens when the path already holds a value:

- ``OVERWRITE``: the desired value replaces whatever is there;
- ``DEFAULT``: the desired value is written only when the path is absent;
- ``ADDITIVE``: the path is a map, desired keys are added, existing keys
  are never removed or changed;
- ``REMOVE``: the path is deleted when present, nothing is created.

Paths not named by a rule are left exactly as they were.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from clawsetup.config import DEFAULT_GATEWAY_PORT
from clawsetup.errors import ConfigCorrupt, ConfigError, MalformedDocument
from clawsetup.profiles import ProfileKind, profile_id
from clawsetup.providers import default_model
from clawsetup.tokens import resolve_token

ConfigDocument = Dict[str, Any]
KeyPath = Tuple[str, ...]

TOKEN_PATH: KeyPath = ("gateway", "auth", "token")
PORT_PATH: KeyPath = ("gateway", "port")

# Sections restored from the pre-install snapshot after `gateway install`.
OWNED_SECTIONS = ("agents", "auth", "messages", "plugins", "channels")

SKILLS = ("search", "shell", "vision", "memory")

DEFAULTS_AGENT = "defaults"
PRIMARY_AGENT = "main"

_MISSING = object()


class MergePolicy(str, Enum):
    """What to do with a desired value when the path already exists."""

    OVERWRITE = "overwrite"
    DEFAULT = "default"
    ADDITIVE = "additive"
    REMOVE = "remove"


@dataclass(frozen=True)
class MergeRule:
    path: KeyPath
    policy: MergePolicy
    value: Any


@dataclass(frozen=True)
class ChannelSettings:
    """Messaging channel to enable, e.g. a Telegram bot."""

    token: str
    name: str = "telegram"
    display_name: str = "Main"
    pairing_policy: str = "pairing"


@dataclass(frozen=True)
class DesiredSettings:
    """Locally desired configuration for one reconciliation pass."""

    provider: str
    secret: str
    model: str
    kind: ProfileKind = ProfileKind.API_KEY
    workspace: Optional[str] = None
    gateway_port: int = DEFAULT_GATEWAY_PORT
    gateway_bind: str = "loopback"
    gateway_mode: str = "local"
    tailscale_mode: str = "off"
    auth_mode: str = "token"
    channel: Optional[ChannelSettings] = None
    service_keys: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", ProfileKind.parse(self.kind))

    @classmethod
    def for_provider(
        cls,
        provider: str,
        secret: str,
        model: Optional[str] = None,
        kind: "str | ProfileKind" = ProfileKind.API_KEY,
        **kwargs: Any,
    ) -> "DesiredSettings":
        """Build settings, taking the provider's catalog default when no model is given."""
        return cls(
            provider=provider,
            secret=secret,
            model=model or default_model(provider),
            kind=ProfileKind.parse(kind),
            **kwargs,
        )

    def with_workspace(self, workspace: str) -> "DesiredSettings":
        return replace(self, workspace=workspace)


def get_path(document: Any, path: Sequence[str], default: Any = None) -> Any:
    """Read a nested value, returning ``default`` when any step is missing."""
    node = document
    for key in path:
        if not isinstance(node, dict) or key not in node:
            return default
        node = node[key]
    return node


def apply_policy(node: Any, path: Sequence[str], policy: MergePolicy, value: Any) -> Any:
    """
    Return ``node`` with ``value`` applied at ``path`` under ``policy``.

    Pure: dictionaries along the path are copied, never modified. A
    non-mapping found on the way to the path is replaced by one. An
    ``ADDITIVE`` target that exists but is not a mapping raises
    ``MalformedDocument``.
    """
    if not path:
        if policy is MergePolicy.REMOVE:
            return _MISSING
        if policy is MergePolicy.OVERWRITE:
            return copy.deepcopy(value)
        if policy is MergePolicy.DEFAULT:
            return copy.deepcopy(value) if node is _MISSING else node
        if node is _MISSING:
            node = {}
        if not isinstance(node, dict):
            raise MalformedDocument(
                f"Expected a JSON object to merge keys into, got {type(node).__name__}"
            )
        merged = dict(node)
        for key, item in value.items():
            if key not in merged:
                merged[key] = copy.deepcopy(item)
        return merged

    head, rest = path[0], path[1:]
    if policy is MergePolicy.REMOVE and (not isinstance(node, dict) or head not in node):
        return node
    base = dict(node) if isinstance(node, dict) else {}
    result = apply_policy(base.get(head, _MISSING), rest, policy, value)
    if result is _MISSING:
        del base[head]
    else:
        base[head] = result
    return base


def build_rules(desired: DesiredSettings, token: str) -> List[MergeRule]:
    """Translate desired settings into the ordered list of merge rules."""
    overwrite, default, additive = MergePolicy.OVERWRITE, MergePolicy.DEFAULT, MergePolicy.ADDITIVE
    rules = [
        MergeRule(("meta",), default, {}),
        MergeRule(("messages",), default, {"ackReactionScope": "group-mentions"}),
        MergeRule(("agents", "defaults", "maxConcurrent"), default, 4),
        MergeRule(("agents", "defaults", "subagents"), default, {"maxConcurrent": 8}),
        MergeRule(("agents", "defaults", "compaction"), default, {"mode": "safeguard"}),
        MergeRule(("agents", "defaults", "model", "primary"), overwrite, desired.model),
        MergeRule(("agents", "defaults", "models"), additive, {desired.model: {}}),
        MergeRule(("gateway", "mode"), overwrite, desired.gateway_mode),
        MergeRule(PORT_PATH, overwrite, desired.gateway_port),
        MergeRule(("gateway", "bind"), overwrite, desired.gateway_bind),
        MergeRule(("gateway", "tailscale"), overwrite, {"mode": desired.tailscale_mode}),
        MergeRule(("gateway", "auth", "mode"), overwrite, desired.auth_mode),
        MergeRule(TOKEN_PATH, overwrite, token),
        MergeRule(
            ("auth", "profiles", profile_id(desired.provider)),
            overwrite,
            {"provider": desired.provider, "mode": desired.kind.value},
        ),
    ]
    if desired.workspace:
        rules.append(MergeRule(("agents", "defaults", "workspace"), overwrite, desired.workspace))

    channel = desired.channel
    if channel is not None and channel.token:
        rules.append(MergeRule(("plugins", "entries", channel.name, "enabled"), overwrite, True))
        rules.append(
            MergeRule(
                ("channels", channel.name, "accounts", "main"),
                overwrite,
                {
                    "token": channel.token,
                    "displayName": channel.display_name,
                    "pairingPolicy": channel.pairing_policy,
                },
            )
        )
    return rules


def merge(
    existing: ConfigDocument,
    desired: DesiredSettings,
    env_token: Optional[str] = None,
    rng=None,
) -> ConfigDocument:
    """Merge ``desired`` into ``existing`` and return the new document."""
    if not isinstance(existing, dict):
        raise MalformedDocument(
            f"Config document must be a JSON object, got {type(existing).__name__}"
        )

    token = resolve_token(env_token, get_path(existing, TOKEN_PATH), rng)
    document: Any = copy.deepcopy(existing)
    for rule in build_rules(desired, token):
        document = apply_policy(document, rule.path, rule.policy, rule.value)
    return document


def reconcile_after_install(pre: ConfigDocument, post: ConfigDocument) -> ConfigDocument:
    """
    Re-apply the pre-install configuration onto the document the installer wrote.

    Owned sections come from ``pre``. ``gateway`` comes from ``post`` so a
    first-run token minted by the installer is accepted, unless ``pre``
    already had a token, which is then restored. Top-level sections only
    ``pre`` knows about are carried over.
    """
    if not isinstance(pre, dict) or not isinstance(post, dict):
        raise ConfigCorrupt("Both pre- and post-install configuration must be JSON objects")

    result = copy.deepcopy(post)
    for section in OWNED_SECTIONS:
        if section in pre:
            result[section] = copy.deepcopy(pre[section])
    for key, value in pre.items():
        if key not in result:
            result[key] = copy.deepcopy(value)

    pre_token = get_path(pre, TOKEN_PATH)
    if isinstance(pre_token, str) and pre_token:
        result = apply_policy(result, TOKEN_PATH, MergePolicy.OVERWRITE, pre_token)
    return result


def _editable(existing: ConfigDocument) -> ConfigDocument:
    if not isinstance(existing, dict):
        raise MalformedDocument(
            f"Config document must be a JSON object, got {type(existing).__name__}"
        )
    return copy.deepcopy(existing)


def set_skill_enabled(existing: ConfigDocument, skill: str, enabled: bool) -> ConfigDocument:
    """Switch a built-in skill plugin on or off; other entry fields are kept."""
    if skill not in SKILLS:
        raise ConfigError(f"Unknown skill {skill!r}; expected one of {', '.join(SKILLS)}")
    return apply_policy(
        _editable(existing), ("plugins", "entries", skill, "enabled"), MergePolicy.OVERWRITE, bool(enabled)
    )


def remove_auth_profile(existing: ConfigDocument, pid: str) -> ConfigDocument:
    return apply_policy(_editable(existing), ("auth", "profiles", pid), MergePolicy.REMOVE, None)


def add_agent(existing: ConfigDocument, name: str) -> ConfigDocument:
    """
    Add a named agent seeded with the default workspace and model.

    An agent that already exists is left as it is.
    """
    if not name or name == DEFAULTS_AGENT:
        raise ConfigError(f"Invalid agent name: {name!r}")
    document = _editable(existing)
    defaults = get_path(document, ("agents", DEFAULTS_AGENT), {})
    seed = {}
    if isinstance(defaults, dict):
        for key in ("workspace", "model"):
            if key in defaults:
                seed[key] = defaults[key]
    return apply_policy(document, ("agents", name), MergePolicy.DEFAULT, seed)


def remove_agent(existing: ConfigDocument, name: str) -> ConfigDocument:
    if name in (DEFAULTS_AGENT, PRIMARY_AGENT):
        raise ConfigError(f"Agent {name!r} cannot be removed")
    return apply_policy(_editable(existing), ("agents", name), MergePolicy.REMOVE, None)


def set_agent_workspace(existing: ConfigDocument, name: str, workspace: str) -> ConfigDocument:
    document = _editable(existing)
    if not isinstance(get_path(document, ("agents", name)), dict):
        raise ConfigError(f"Unknown agent: {name}")
    return apply_policy(document, ("agents", name, "workspace"), MergePolicy.OVERWRITE, workspace)
