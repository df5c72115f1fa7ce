"""Marathon event models and the Slack message shape they render into."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator


# ---------------------------------------------------------------------------
# Inbound: Marathon events and deployment plans
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Event:
    type: str
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Event:
        """Build an event from a Marathon callback or event-stream payload."""
        return cls(type=payload["eventType"], data=payload)


@dataclass(frozen=True)
class Action:
    app: str
    action: str | None = None
    type: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Action:
        return cls(app=data["app"], action=data.get("action"), type=data.get("type"))

    @property
    def label(self) -> str:
        return self.action or self.type or "Step"


@dataclass(frozen=True)
class Step:
    actions: list[Action]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Step:
        return cls(actions=[Action.from_dict(a) for a in data["actions"]])


@dataclass(frozen=True)
class AppTarget:
    id: str
    instances: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppTarget:
        return cls(id=data["id"], instances=data.get("instances", 0))


@dataclass(frozen=True)
class Group:
    id: str
    apps: list[AppTarget] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Group:
        return cls(id=data["id"], apps=[AppTarget.from_dict(a) for a in data.get("apps", [])])


@dataclass(frozen=True)
class Target:
    apps: list[AppTarget] = field(default_factory=list)
    groups: list[Group] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Target:
        return cls(
            apps=[AppTarget.from_dict(a) for a in data.get("apps", [])],
            groups=[Group.from_dict(g) for g in data.get("groups", [])],
        )

    def find_instances(self, app_id: str, group_name: str = "/") -> int:
        """Target instance count for an app, 0 when the plan has no match.

        Top-level apps (group ``/``) are looked up in ``apps``. Grouped apps
        are looked up inside the first group whose id equals ``group_name``,
        then in ``apps`` when that group does not list them.
        """
        candidates: list[AppTarget] = []
        if group_name != "/":
            group = next((g for g in self.groups if g.id == group_name), None)
            if group is not None:
                candidates.extend(group.apps)
        candidates.extend(self.apps)
        for app in candidates:
            if app.id == app_id:
                return app.instances
        return 0


@dataclass(frozen=True)
class Plan:
    id: str
    steps: list[Step]
    target: Target = field(default_factory=Target)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Plan:
        return cls(
            id=data["id"],
            steps=[Step.from_dict(s) for s in data["steps"]],
            target=Target.from_dict(data.get("target", {})),
        )

    def actions(self) -> Iterator[Action]:
        for step in self.steps:
            yield from step.actions


# ---------------------------------------------------------------------------
# Outbound: Slack message
# ---------------------------------------------------------------------------

@dataclass
class SlackField:
    title: str
    value: str
    short: bool = True


@dataclass
class Attachment:
    fallback: str
    title: str
    text: str
    color: str
    ts: int
    fields: list[SlackField] = field(default_factory=list)
    mrkdwn_in: list[str] = field(default_factory=lambda: ["text"])

    def to_dict(self) -> dict[str, Any]:
        return {
            "fallback": self.fallback,
            "title": self.title,
            "text": self.text,
            "color": self.color,
            "fields": [
                {"title": f.title, "value": f.value, "short": f.short}
                for f in self.fields
            ],
            "mrkdwn_in": list(self.mrkdwn_in),
            "ts": self.ts,
        }


@dataclass
class RenderedMessage:
    username: str
    icon_url: str
    attachments: list[Attachment]
    # Projects whose dedicated webhook receives this message instead of the default
    projects: list[str] = field(default_factory=list)
    mrkdwn: bool = True

    def to_payload(self) -> dict[str, Any]:
        """JSON body POSTed to a webhook. ``projects`` is sent as-is."""
        return {
            "username": self.username,
            "icon_url": self.icon_url,
            "mrkdwn": self.mrkdwn,
            "attachments": [a.to_dict() for a in self.attachments],
            "projects": list(self.projects),
        }
