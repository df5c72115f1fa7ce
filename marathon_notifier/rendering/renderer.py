"""Render Marathon events into Slack messages.

Each known event type has its own render method returning a single
attachment. Unknown types fall through to a generic attachment, so
``render`` never fails on classification. Missing fields in ``event.data``
are not validated here; the resulting ``KeyError``/``TypeError`` reaches
the caller.
"""

from __future__ import annotations

from typing import Any, Callable

from marathon_notifier.config import SlackConfig
from marathon_notifier.models import (
    Action,
    Attachment,
    Event,
    Plan,
    RenderedMessage,
    SlackField,
)
from marathon_notifier.observer import Observer
from marathon_notifier.rendering.timestamps import date_token, to_unix_timestamp
from marathon_notifier.utils.logging import get_logger

log = get_logger(__name__)

BLUE = "#0066cc"
GREEN = "#7CD197"
RED = "#ff0000"
ORANGE = "#ff9900"

TASK_STATUSES: dict[str, tuple[str, str]] = {
    "TASK_FAILED": ("Task failed", RED),
    "TASK_KILLED": ("Task killed", RED),
    "TASK_LOST": ("Task lost", RED),
    "TASK_RUNNING": ("Task running", GREEN),
    "TASK_KILLING": ("Task killing", BLUE),
    "TASK_FINISHED": ("Task finished", BLUE),
    "TASK_STAGING": ("Task staging", BLUE),
    "TASK_STARTING": ("Task starting", BLUE),
}


def split_app_path(app: str) -> tuple[str, str | None]:
    """Return ``(group_name, project)`` for a Marathon app id.

    ``/proj/svc`` belongs to group ``/proj`` and project ``proj``;
    ``/svc`` is a top-level app in group ``/`` with no project.
    """
    parts = app.split("/")
    if len(parts) > 2:
        return "/" + parts[1], parts[1]
    return "/", None


def step_fields(plan: Plan) -> list[SlackField]:
    return [
        SlackField(title=f"{index}. {action.label}", value=action.app)
        for index, action in enumerate(plan.actions(), start=1)
    ]


def describe_action(action: Action, plan: Plan) -> str:
    if action.action == "RestartApplication":
        return "was restarted"
    if action.action == "ScaleApplication":
        group_name, _ = split_app_path(action.app)
        instances = plan.target.find_instances(action.app, group_name)
        return f"was scaled to {instances} instances"
    return f"was {action.label}"


RenderFunc = Callable[[dict[str, Any]], Attachment]


class EventRenderer:
    """Maps a Marathon event to exactly one Slack message."""

    def __init__(self, config: SlackConfig, observer: Observer) -> None:
        self._config = config
        self._observer = observer
        self._renderers: dict[str, RenderFunc] = {
            "deployment_info": self._deployment_info,
            "deployment_failed": self._deployment_failed,
            "deployment_step_success": self._deployment_step_success,
            "deployment_step_failure": self._deployment_step_failure,
            "group_change_success": self._group_change_success,
            "group_change_failed": self._group_change_failed,
            "failed_health_check_event": self._failed_health_check,
            "health_status_changed_event": self._health_status_changed,
            "unhealthy_task_kill_event": self._unhealthy_task_kill,
            "status_update_event": self._status_update,
        }

    @property
    def known_types(self) -> list[str]:
        return ["deployment_success", *self._renderers]

    def render(self, event: Event) -> RenderedMessage:
        self._observer.on_received_event({
            "timestamp": event.data.get("timestamp"),
            "eventType": event.type,
            "data": event.data,
        })

        projects: list[str] = []
        render_func = self._renderers.get(event.type)
        if event.type == "deployment_success":
            plan = Plan.from_dict(event.data["plan"])
            attachment = self._deployment_success(event.data, plan)
            projects = self.project_routes(plan)
        elif render_func is None:
            log.debug("unknown_event_type", event_type=event.type)
            attachment = self._unknown(event.type, event.data)
        else:
            attachment = render_func(event.data)

        return RenderedMessage(
            username=self._config.bot_name,
            icon_url=self._config.icon_url,
            attachments=[attachment],
            projects=projects,
        )

    def project_routes(self, plan: Plan) -> list[str]:
        """Configured projects touched by the plan, one entry per action."""
        routes: list[str] = []
        for action in plan.actions():
            _, project = split_app_path(action.app)
            if project is not None and project in self._config.projects:
                routes.append(project)
        return routes

    # ------------------------------------------------------------------
    # Deployments
    # ------------------------------------------------------------------

    def _deployment_info(self, data: dict[str, Any]) -> Attachment:
        plan = Plan.from_dict(data["plan"])
        current = Action.from_dict(data["currentStep"]["actions"][0])
        return Attachment(
            fallback="Deployment was triggered.",
            title="Deployment info",
            text=f"The deployment `{plan.id}` triggered step `{current.action}` of the following steps:",
            color=BLUE,
            ts=to_unix_timestamp(data["timestamp"]),
            fields=step_fields(plan),
        )

    def _deployment_success(self, data: dict[str, Any], plan: Plan) -> Attachment:
        text = (
            f"The deployment `{data['id']}` was completed successfully at "
            f"{date_token(data['timestamp'])}"
        )
        text += "\nApps affected:"
        for index, action in enumerate(plan.actions(), start=1):
            if index > 1:
                text += "\n\t"
            text += f"\t{index}) `{action.app}` {describe_action(action, plan)}"
        text += f"\nEnvironment: `{self._config.environment}`"
        text += f"\nRegion: `{self._config.region}`"
        return Attachment(
            fallback="Deployment was successful.",
            title="Deployment success",
            text=text,
            color=GREEN,
            ts=to_unix_timestamp(data["timestamp"]),
        )

    def _deployment_failed(self, data: dict[str, Any]) -> Attachment:
        return Attachment(
            fallback="Deployment failed.",
            title="Deployment failed",
            text=f"The deployment `{data['id']}` failed at {date_token(data['timestamp'])}",
            color=RED,
            ts=to_unix_timestamp(data["timestamp"]),
        )

    def _deployment_step_success(self, data: dict[str, Any]) -> Attachment:
        plan = Plan.from_dict(data["plan"])
        return Attachment(
            fallback="Deployment step was completed.",
            title="Deployment step(s) success",
            text=f"The deployment `{plan.id}` completed the following steps:",
            color=GREEN,
            ts=to_unix_timestamp(data["timestamp"]),
            fields=step_fields(plan),
        )

    def _deployment_step_failure(self, data: dict[str, Any]) -> Attachment:
        plan = Plan.from_dict(data["plan"])
        return Attachment(
            fallback="Deployment step failed.",
            title="Deployment step(s) failed",
            text=f"The deployment `{plan.id}` failed at the following steps:",
            color=RED,
            ts=to_unix_timestamp(data["timestamp"]),
            fields=step_fields(plan),
        )

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def _group_change_success(self, data: dict[str, Any]) -> Attachment:
        return Attachment(
            fallback="Group change was completed.",
            title="Group change completed",
            text=f"The group `{data['groupId']}` completed at {date_token(data['timestamp'])}.",
            color=GREEN,
            ts=to_unix_timestamp(data["timestamp"]),
        )

    def _group_change_failed(self, data: dict[str, Any]) -> Attachment:
        return Attachment(
            fallback="Group change failed.",
            title="Group change failed",
            text=f"The group `{data['groupId']}` failed at {date_token(data['timestamp'])}.",
            color=RED,
            ts=to_unix_timestamp(data["timestamp"]),
        )

    # ------------------------------------------------------------------
    # Health checks and tasks
    # ------------------------------------------------------------------

    def _failed_health_check(self, data: dict[str, Any]) -> Attachment:
        return Attachment(
            fallback="App health check failed.",
            title="App health check failed",
            text=(
                f"The app `{data['appId']}` (with task id `{data['taskId']}`) "
                f"failed its health check at {date_token(data['timestamp'])}"
            ),
            color=ORANGE,
            ts=to_unix_timestamp(data["timestamp"]),
        )

    def _health_status_changed(self, data: dict[str, Any]) -> Attachment:
        if data.get("instanceId"):
            subject = f"with instance id `{data['instanceId']}`"
        else:
            subject = f"with task id `{data['taskId']}`"
        alive = bool(data.get("alive"))
        return Attachment(
            fallback="App health status changed.",
            title="App health check status changed",
            text=(
                f"The app `{data['appId']}` ({subject}) changed its health check status "
                f"at {date_token(data['timestamp'])} to {'*healthy*' if alive else '*unhealthy*'}"
            ),
            color=GREEN if alive else RED,
            ts=to_unix_timestamp(data["timestamp"]),
        )

    def _unhealthy_task_kill(self, data: dict[str, Any]) -> Attachment:
        return Attachment(
            fallback="Unhealthy task was killed.",
            title="Unhealthy task was killed",
            text=(
                f"The app `{data['appId']}` had its task with id `{data['taskId']}` killed "
                f"at {date_token(data['timestamp'])} due to an '{data['reason']}' error"
            ),
            color=RED,
            ts=to_unix_timestamp(data["timestamp"]),
        )

    def _status_update(self, data: dict[str, Any]) -> Attachment:
        status = data["taskStatus"]
        label, color = TASK_STATUSES.get(status, (status, BLUE))
        title = f"Task Status Update - {label}"
        return Attachment(
            fallback=title,
            title=title,
            text=(
                f"The app `{data['appId']}` (with task id `{data['taskId']}`) changed its "
                f"status to `{status}` at {date_token(data['timestamp'])}"
            ),
            color=color,
            ts=to_unix_timestamp(data["timestamp"]),
        )

    def _unknown(self, event_type: str, data: dict[str, Any]) -> Attachment:
        return Attachment(
            fallback=f"Event type {event_type} received.",
            title=f"Event type {event_type} received.",
            text=f"An event of type {event_type} was received.",
            color=BLUE,
            ts=to_unix_timestamp(data["timestamp"]),
        )
