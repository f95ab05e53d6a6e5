"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, post_load, validate

from token_service.services.auth.dto import LoginIn, RefreshIn


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    username = fields.String(required=True, validate=validate.Length(min=1, max=80))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))

    @post_load
    def to_dto(self, data, **kwargs) -> LoginIn:
        return LoginIn(username=data["username"], password=data["password"])


class RefreshSchema(Schema):
    """Input payload carrying a refresh token to exchange."""

    refresh_token = fields.String(required=True, validate=validate.Length(min=1))

    @post_load
    def to_dto(self, data, **kwargs) -> RefreshIn:
        return RefreshIn(refresh_token=data["refresh_token"])


class TokenPairSchema(Schema):
    """Response payload with an access/refresh token pair."""

    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
    token_type = fields.String(dump_default="Bearer")
    expires_in = fields.Integer(required=True)
    refresh_expires_in = fields.Integer(required=True)


class MeSchema(Schema):
    """Identity details read from the verified access token."""

    user_id = fields.Integer(required=True)
    username = fields.String(required=True)
    role = fields.String(required=True)
