"""Request-scoped dependencies.

Authentication lives upstream: the auth layer is expected to set
``X-Actor-Id`` (and optionally ``X-Actor-Name``) on requests it has verified.
"""

from fastapi import Header, Request

from securevault.errors import UnauthenticatedError
from securevault.schemas.activity import Actor, RequestContext
from securevault.services.export_staging import ExportStaging
from securevault.utils.crypto import CryptoBox
from securevault.utils.secret_field import SecretField


def get_crypto(request: Request) -> CryptoBox:
    return request.app.state.crypto


def get_secret_field(request: Request) -> SecretField:
    return SecretField(get_crypto(request))


def get_staging(request: Request) -> ExportStaging:
    return request.app.state.staging


def get_request_context(
    request: Request,
    x_actor_id: str | None = Header(None),
    x_actor_name: str | None = Header(None),
    user_agent: str | None = Header(None),
) -> RequestContext:
    if not x_actor_id:
        raise UnauthenticatedError()
    return RequestContext(
        actor=Actor(id=x_actor_id, display_name=x_actor_name or x_actor_id),
        ip=request.client.host if request.client else None,
        user_agent=user_agent,
    )
