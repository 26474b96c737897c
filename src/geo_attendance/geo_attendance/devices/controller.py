from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body, json_endpoint
from ..common.validators import require_id, require_non_empty
from ..container import Container
from .model import DeviceMetadata


def register(app: Flask, container: Container) -> None:
    guard = container.device_guard

    @app.route("/api/devices/verdict", methods=["GET"], endpoint="api_device_verdict")
    @json_endpoint
    def device_verdict():
        person_id = require_id(request.args.get("personId"), "personId")
        device_id = require_non_empty(request.args.get("deviceId"), "deviceId")
        verdict = guard.verdict(person_id, device_id, now=container.clock())
        return jsonify({"personId": person_id, "deviceId": device_id, "verdict": verdict.value}), 200

    @app.route("/api/devices/request-approval", methods=["POST"], endpoint="api_device_request_approval")
    @json_endpoint
    def request_approval():
        data = json_body()
        person_id = require_id(data.get("staffId"), "staffId")
        device_record_id = guard.request_approval(person_id, DeviceMetadata.from_dict(data))
        return jsonify({"deviceRecordId": device_record_id}), 201
