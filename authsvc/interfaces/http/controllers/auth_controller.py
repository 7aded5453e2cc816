# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import UTC, datetime
from http import HTTPStatus

from flask import Blueprint, Response, jsonify

from authsvc.application.services.tokens import TokenService
from authsvc.application.services.user_directory import UserDirectory
from authsvc.domain.users.entities import Token
from authsvc.domain.users.exceptions import ConflictError
from authsvc.interfaces.http.auth import ACCESS_COOKIE
from authsvc.interfaces.http.dto.auth import (
    LoginRequestDTO,
    RefreshTokenRequestDTO,
    RegisterRequestDTO,
    RegisterResponseDTO,
    TokenPairDTO,
)
from authsvc.shared.config import SecurityConfig
from authsvc.shared.errors.validation import parse_json_body
from authsvc.shared.logging import logger


class AuthController:
    def __init__(
        self,
        *,
        users: UserDirectory,
        tokens: TokenService,
        security: SecurityConfig,
    ) -> None:
        self._users = users
        self._tokens = tokens
        self._security = security

    def _set_access_cookie(self, response: Response, token: Token) -> None:
        max_age = int((token.expires_at - datetime.now(UTC)).total_seconds())
        response.set_cookie(
            ACCESS_COOKIE,
            token.token,
            httponly=True,
            samesite=self._security.cookie_samesite,
            secure=self._security.cookie_secure,
            max_age=max(max_age, 0),
            path="/",
        )

    def register(self) -> tuple[Response, int]:
        dto = parse_json_body(RegisterRequestDTO)

        try:
            user, pair = self._users.register(dto.username, dto.email, dto.password)
        except ConflictError as exc:
            logger.info("auth.register: rejected, username or email taken")
            return jsonify(exc.to_dict()), HTTPStatus.INTERNAL_SERVER_ERROR

        payload = RegisterResponseDTO(
            user_id=user.id,
            access_token=pair.access_token.token,
            refresh_token=pair.refresh_token.token,
        )
        response = jsonify(payload.model_dump())
        self._set_access_cookie(response, pair.access_token)
        logger.info(f"auth.register: ok user_id={user.id}")
        return response, 200

    def login(self) -> tuple[Response, int]:
        dto = parse_json_body(LoginRequestDTO)

        user, pair = self._users.login(dto.login, dto.password)

        response = jsonify(TokenPairDTO.from_pair(pair).model_dump())
        self._set_access_cookie(response, pair.access_token)
        logger.info(f"auth.login: ok user_id={user.id}")
        return response, 200

    def refresh(self) -> tuple[Response, int]:
        dto = parse_json_body(RefreshTokenRequestDTO)

        pair = self._tokens.refresh_jwt(dto.refresh_token)

        response = jsonify(TokenPairDTO.from_pair(pair).model_dump())
        self._set_access_cookie(response, pair.access_token)
        return response, 200

    def logout(self) -> tuple[Response, int]:
        dto = parse_json_body(RefreshTokenRequestDTO)

        self._tokens.logout_jwt(dto.refresh_token)

        response = Response(status=204)
        response.delete_cookie(ACCESS_COOKIE, path="/")
        return response, 204

    def as_blueprint(self) -> Blueprint:
        bp = Blueprint("auth", __name__, url_prefix="/v1/auth")
        bp.add_url_rule("/register", view_func=self.register, methods=["POST"])
        bp.add_url_rule("/login", view_func=self.login, methods=["POST"])
        bp.add_url_rule("/refresh", view_func=self.refresh, methods=["POST"])
        bp.add_url_rule("/logout", view_func=self.logout, methods=["POST"])
        return bp
