# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from flask import Blueprint, Response, jsonify

from authsvc.application.services.tokens import TokenService
from authsvc.application.services.user_directory import UserDirectory
from authsvc.interfaces.http.auth import auth_required, authed_request
from authsvc.interfaces.http.dto.auth import UserDTO


class UsersController:
    def __init__(self, *, users: UserDirectory, tokens: TokenService) -> None:
        self._users = users
        self._tokens = tokens

    def me(self) -> tuple[Response, int]:
        user = self._users.get(authed_request().user_id)
        return jsonify(UserDTO.from_domain(user).model_dump(mode="json")), 200

    def as_blueprint(self) -> Blueprint:
        bp = Blueprint("users", __name__, url_prefix="/v1/users")
        bp.add_url_rule("/me", view_func=auth_required(self._tokens)(self.me), methods=["GET"])
        return bp
