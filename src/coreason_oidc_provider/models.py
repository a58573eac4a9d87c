# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_oidc_provider

"""
Data models for the coreason-oidc-provider package.
"""

from datetime import datetime
from enum import StrEnum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from coreason_oidc_provider.uri_validator import is_absolute_uri

T = TypeVar("T")

_NON_NULLABLE_CLIENT_FIELDS = (
    "name",
    "redirect_uris",
    "response_types",
    "grant_types",
    "scopes",
    "token_endpoint_auth_method",
    "subject_type",
    "contacts",
)


def _require_absolute_uris(uris: list[str]) -> list[str]:
    for uri in uris:
        if not is_absolute_uri(uri):
            raise ValueError(f"redirect_uris must contain absolute URIs, got {uri!r}")
    return uris


class Scope(StrEnum):
    OPENID = "openid"
    PROFILE = "profile"
    EMAIL = "email"
    ADDRESS = "address"
    PHONE = "phone"
    OFFLINE_ACCESS = "offline_access"


class ResponseType(StrEnum):
    """Response types in their normalized (sorted, space-delimited) form."""

    CODE = "code"
    ID_TOKEN = "id_token"
    ID_TOKEN_TOKEN = "id_token token"
    CODE_ID_TOKEN = "code id_token"
    CODE_TOKEN = "code token"
    CODE_ID_TOKEN_TOKEN = "code id_token token"


class SubjectType(StrEnum):
    PUBLIC = "public"
    PAIRWISE = "pairwise"


class SigningAlgorithm(StrEnum):
    """JWA (RFC 7518 / RFC 8037) digital signature and MAC algorithms."""

    RS256 = "RS256"
    RS384 = "RS384"
    RS512 = "RS512"
    PS256 = "PS256"
    PS384 = "PS384"
    PS512 = "PS512"
    ES256 = "ES256"
    ES384 = "ES384"
    ES512 = "ES512"
    HS256 = "HS256"
    HS384 = "HS384"
    HS512 = "HS512"
    EDDSA = "EdDSA"


class ResponseMode(StrEnum):
    QUERY = "query"
    FRAGMENT = "fragment"
    FORM_POST = "form_post"


class GrantType(StrEnum):
    AUTHORIZATION_CODE = "authorization_code"
    IMPLICIT = "implicit"
    REFRESH_TOKEN = "refresh_token"
    CLIENT_CREDENTIALS = "client_credentials"


class TokenEndpointAuthMethod(StrEnum):
    CLIENT_SECRET_BASIC = "client_secret_basic"
    CLIENT_SECRET_POST = "client_secret_post"
    NONE = "none"


class Claim(StrEnum):
    """Standard claims of OpenID Connect Core 1.0, section 5.1."""

    SUB = "sub"
    NAME = "name"
    GIVEN_NAME = "given_name"
    FAMILY_NAME = "family_name"
    MIDDLE_NAME = "middle_name"
    NICKNAME = "nickname"
    PREFERRED_USERNAME = "preferred_username"
    PROFILE = "profile"
    PICTURE = "picture"
    WEBSITE = "website"
    EMAIL = "email"
    EMAIL_VERIFIED = "email_verified"
    GENDER = "gender"
    BIRTHDATE = "birthdate"
    ZONEINFO = "zoneinfo"
    LOCALE = "locale"
    PHONE_NUMBER = "phone_number"
    PHONE_NUMBER_VERIFIED = "phone_number_verified"
    ADDRESS = "address"
    UPDATED_AT = "updated_at"


class CodeChallengeMethod(StrEnum):
    S256 = "S256"
    PLAIN = "plain"


class ProviderConfig(BaseModel):
    """
    The capability set of the OpenID Provider.

    Constructed once at startup (usually through ProviderConfigBuilder) and
    immutable afterwards. Fields accept their camelCase aliases so configuration
    files written in either style can be loaded.

    The "supported" fields are kept as loose string tuples: conformance to the
    protocol vocabularies is checked by ProviderService.validate_config so that
    violations surface as protocol errors rather than parse errors.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    issuer: str = Field(..., description="Origin anchor of the provider. Must not contain a path.")
    authorization_endpoint: str
    token_endpoint: str
    jwks_uri: str
    userinfo_endpoint: str | None = None
    registration_endpoint: str | None = None

    scopes_supported: tuple[str, ...] | None = None
    response_types_supported: tuple[str, ...]
    subject_types_supported: tuple[str, ...]
    id_token_signing_alg_values_supported: tuple[str, ...]
    response_modes_supported: tuple[str, ...] | None = None
    grant_types_supported: tuple[str, ...] | None = None
    token_endpoint_auth_methods_supported: tuple[str, ...] | None = None
    claims_supported: tuple[str, ...] | None = None
    code_challenge_methods_supported: tuple[str, ...] | None = None


class DiscoveryDocument(BaseModel):
    """
    The ``.well-known/openid-configuration`` document.
    A pure projection of ProviderConfig; absent optional fields are omitted on dump.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    issuer: str
    authorization_endpoint: str
    jwks_uri: str
    token_endpoint: str
    userinfo_endpoint: str | None = None
    registration_endpoint: str | None = None
    scopes_supported: list[str] | None = None
    response_types_supported: list[str]
    subject_types_supported: list[str]
    id_token_signing_alg_values_supported: list[str]
    response_modes_supported: list[str] | None = None
    grant_types_supported: list[str] | None = None
    token_endpoint_auth_methods_supported: list[str] | None = None
    claims_supported: list[str] | None = None
    code_challenge_methods_supported: list[str] | None = None

    def to_json(self) -> dict[str, str | list[str]]:
        return self.model_dump(exclude_none=True)


class ClientSummary(BaseModel):
    """Listing projection of a registered client."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    name: str
    description: str | None = None
    subject_type: SubjectType = SubjectType.PUBLIC
    client_uri: str | None = None
    logo_uri: str | None = None


class Client(ClientSummary):
    """
    A registered relying party.

    Owned by the client directory; this package only reads it.

    Attributes:
        redirect_uris (list[str]): URIs the provider may redirect to after authorization.
        response_types (list[str]): Response types the client may request.
        grant_types (list[str]): Grant types the client may use.
        scopes (list[str]): Scopes the client may request. Must include ``openid``.
        token_endpoint_auth_method (TokenEndpointAuthMethod): How the client authenticates.
    """

    redirect_uris: list[str] = Field(..., min_length=1)
    response_types: list[str] = Field(default_factory=lambda: [ResponseType.CODE.value])
    grant_types: list[str] = Field(default_factory=lambda: [GrantType.AUTHORIZATION_CODE.value])
    scopes: list[str] = Field(default_factory=lambda: [Scope.OPENID.value])
    token_endpoint_auth_method: TokenEndpointAuthMethod = TokenEndpointAuthMethod.CLIENT_SECRET_BASIC
    tos_uri: str | None = None
    policy_uri: str | None = None
    contacts: list[EmailStr] = Field(default_factory=list, description="Administrator e-mail addresses.")
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def summary(self) -> ClientSummary:
        return ClientSummary.model_validate(self.model_dump(include=set(ClientSummary.model_fields)))


class ClientRegistration(BaseModel):
    """Input for registering a new client."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    description: str | None = None
    redirect_uris: list[str] = Field(..., min_length=1)
    response_types: list[str] = Field(default_factory=lambda: [ResponseType.CODE.value])
    grant_types: list[str] = Field(default_factory=lambda: [GrantType.AUTHORIZATION_CODE.value])
    scopes: list[str] = Field(default_factory=lambda: [Scope.OPENID.value])
    token_endpoint_auth_method: TokenEndpointAuthMethod = TokenEndpointAuthMethod.CLIENT_SECRET_BASIC
    subject_type: SubjectType = SubjectType.PUBLIC
    client_uri: str | None = None
    logo_uri: str | None = None
    tos_uri: str | None = None
    policy_uri: str | None = None
    contacts: list[EmailStr] = Field(default_factory=list)

    @field_validator("redirect_uris")
    @classmethod
    def validate_redirect_uris(cls, v: list[str]) -> list[str]:
        return _require_absolute_uris(v)


class ClientUpdate(BaseModel):
    """
    Partial update of a registered client. Unset fields are left untouched.

    Fields a client cannot be without (name, redirect_uris, ...) may be omitted
    but not cleared with an explicit null.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    redirect_uris: list[str] | None = None
    response_types: list[str] | None = None
    grant_types: list[str] | None = None
    scopes: list[str] | None = None
    token_endpoint_auth_method: TokenEndpointAuthMethod | None = None
    subject_type: SubjectType | None = None
    client_uri: str | None = None
    logo_uri: str | None = None
    tos_uri: str | None = None
    policy_uri: str | None = None
    contacts: list[EmailStr] | None = None

    @field_validator("redirect_uris")
    @classmethod
    def validate_redirect_uris(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        if not v:
            raise ValueError("redirect_uris must contain at least one URI")
        return _require_absolute_uris(v)

    @model_validator(mode="after")
    def reject_cleared_fields(self) -> "ClientUpdate":
        cleared = [name for name in _NON_NULLABLE_CLIENT_FIELDS if name in self.model_fields_set]
        cleared = [name for name in cleared if getattr(self, name) is None]
        if cleared:
            raise ValueError(f"Fields cannot be cleared: {', '.join(cleared)}")
        return self


class ClientDeletion(BaseModel):
    model_config = ConfigDict(frozen=True)

    client_id: str
    deleted_at: datetime


class AuthorizationRequest(BaseModel):
    """
    Inbound parameters of an authorization request. Request scoped, never persisted.

    ``response_type`` and ``scope`` are optional here so that their absence is
    reported by AuthorizationRequestValidator as a protocol error.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    response_type: str | None = None
    client_id: str = Field(..., min_length=1)
    redirect_uri: str
    scope: str | None = None
    state: str | None = None
    code_challenge: str | None = None
    code_challenge_method: str | None = None
    nonce: str | None = None

    @field_validator("redirect_uri")
    @classmethod
    def validate_redirect_uri(cls, v: str) -> str:
        if not is_absolute_uri(v):
            raise ValueError("redirect_uri must be a valid absolute URI")
        return v


class PaginationOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)


class PaginationMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    items_per_page: int
    current_page: int
    total_items: int
    total_pages: int


class PaginatedResult(BaseModel, Generic[T]):
    model_config = ConfigDict(frozen=True)

    data: list[T]
    metadata: PaginationMetadata
