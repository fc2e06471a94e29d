from fastapi import APIRouter, HTTPException, Request

from shared_debrid.errors import ConflictError, LeaseStoreError, StorageCorruptError
from shared_debrid.schemas.lease import LeaseDecision
from shared_debrid.schemas.manifest import Manifest
from shared_debrid.schemas.stream import Stream, StreamResponse
from shared_debrid.services.lease_manager import LeaseManager
from shared_debrid.services.lease_policy import format_instant

router = APIRouter()

_STREAM_NAME = 'Shared Debrid'
_SAFE_VIDEO_ID = 'dQw4w9WgXcQ'
_DANGER_VIDEO_ID = 'abm8QCh7pBg'


def _lease_manager(request: Request, auth_token: str, gist_id: str) -> LeaseManager:
    settings = request.app.state.get_settings()
    store = request.app.state.store_factory(auth_token, gist_id)
    return LeaseManager(
        store,
        settings.SHARED_DEBRID_FILE_NAME,
        default_session_minutes=settings.SHARED_DEBRID_SESSION_MINUTES,
    )


def _storage_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, StorageCorruptError):
        return HTTPException(status_code=500, detail='STORAGE_CORRUPT')
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=409, detail='LEASE_CONFLICT')
    return HTTPException(status_code=503, detail='STORAGE_UNAVAILABLE')


def _decision_stream(decision: LeaseDecision) -> Stream:
    if decision.granted:
        return Stream(
            name=_STREAM_NAME,
            description=f'Safe and ready to use until {format_instant(decision.ended_at)}',
            ytId=_SAFE_VIDEO_ID,
        )
    return Stream(
        name=_STREAM_NAME,
        description=f'DANGER! Being used by {decision.holder} until {format_instant(decision.ended_at)}',
        ytId=_DANGER_VIDEO_ID,
    )


def _claim_streams(
    request: Request,
    auth_token: str,
    gist_id: str,
    username: str,
    session_minutes: str | None,
) -> dict:
    manager = _lease_manager(request, auth_token, gist_id)
    try:
        decision = manager.claim(username, session_minutes)
    except LeaseStoreError as exc:
        print(f'[STREAM][claim_failed] gist_id={gist_id} username={username} error={exc}', flush=True)
        raise _storage_http_error(exc) from exc

    print(
        f'[STREAM][claim_result] gist_id={gist_id} username={username} granted={int(decision.granted)}',
        flush=True,
    )
    return StreamResponse(streams=[_decision_stream(decision)]).model_dump()


@router.get('/{auth_token}/{gist_id}/status')
def get_lease_status(auth_token: str, gist_id: str, request: Request):
    manager = _lease_manager(request, auth_token, gist_id)
    try:
        state = manager.get()
    except LeaseStoreError as exc:
        raise _storage_http_error(exc) from exc

    return {**state.serialize(), 'active': not state.is_expired()}


@router.get('/{auth_token}/{gist_id}/{username}/manifest.json')
@router.get('/{auth_token}/{gist_id}/{username}/{session_minutes}/manifest.json')
def get_manifest(request: Request):
    return Manifest(version=request.app.version).model_dump()


@router.get('/{auth_token}/{gist_id}/{username}/stream/{media_type}/{media_id}.json')
def get_streams(auth_token: str, gist_id: str, username: str, media_type: str, media_id: str, request: Request):
    return _claim_streams(request, auth_token, gist_id, username, None)


@router.get('/{auth_token}/{gist_id}/{username}/{session_minutes}/stream/{media_type}/{media_id}.json')
def get_streams_with_session(
    auth_token: str,
    gist_id: str,
    username: str,
    session_minutes: str,
    media_type: str,
    media_id: str,
    request: Request,
):
    return _claim_streams(request, auth_token, gist_id, username, session_minutes)
