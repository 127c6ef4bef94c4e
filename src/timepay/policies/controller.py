from __future__ import annotations

from flask import Flask

from ..common.http import current_actor, json_body, login_required, ok
from ..core.enums import PolicyType
from ..core.exceptions import ValidationError


def _policy_type(value) -> PolicyType:
    try:
        return PolicyType(str(value).upper())
    except ValueError as exc:
        raise ValidationError(f"Unknown policy type: {value}") from exc


def register(app: Flask, container) -> None:
    @app.route("/api/policies", methods=["GET"], endpoint="policy_list")
    @login_required
    def list_policies():
        return ok(container.policy_service.list_policies(actor=current_actor()))

    @app.route("/api/policies/active/<policy_type>", methods=["GET"], endpoint="policy_active")
    @login_required
    def active_policy(policy_type: str):
        policy = container.policy_service.get_active_config(actor=current_actor(), policy_type=_policy_type(policy_type))
        return ok(policy)

    @app.route("/api/policies", methods=["POST"], endpoint="policy_create")
    @login_required
    def create_policy():
        data = json_body()
        policy = container.policy_service.create_policy(
            actor=current_actor(),
            policy_type=_policy_type(data.get("type")),
            config=data.get("config"),
            is_active=bool(data.get("isActive", True)),
        )
        return ok(policy, 201)

    @app.route("/api/policies/<int:policy_id>", methods=["PATCH"], endpoint="policy_update")
    @login_required
    def update_policy(policy_id: int):
        data = json_body()
        policy = container.policy_service.update_policy(
            actor=current_actor(),
            policy_id=policy_id,
            config=data.get("config"),
            is_active=data.get("isActive"),
        )
        return ok(policy)
